import gzip
import logging
import os
import shutil
from pathlib import Path

from .deadline import Deadline
from .errors import BackupError, CompressionError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def compress_file(input_path, deadline: Deadline | None = None, level: int = 6) -> Path:
    """Gzip ``input_path`` to ``<input_path>.gz`` in fixed-size chunks.

    On success the input is removed. On failure the input is left untouched,
    the partial output is removed and the error is raised.
    """
    source = Path(input_path)
    target = source.with_name(source.name + ".gz")
    try:
        with open(source, "rb") as reader, gzip.open(target, "wb", compresslevel=level) as writer:
            for chunk in iter(lambda: reader.read(CHUNK_SIZE), b""):
                if deadline is not None:
                    deadline.check()
                writer.write(chunk)
    except BackupError:
        _discard(target)
        raise
    except (OSError, EOFError, ValueError) as exc:
        _discard(target)
        raise CompressionError(f"failed to compress {source.name}: {exc}") from exc

    os.unlink(source)
    logger.info("Compressed %s -> %s (%d bytes)", source.name, target.name, target.stat().st_size)
    return target


def decompress_file(input_path, output_path) -> Path:
    target = Path(output_path)
    with gzip.open(input_path, "rb") as reader, open(target, "wb") as writer:
        shutil.copyfileobj(reader, writer, CHUNK_SIZE)
    return target


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
