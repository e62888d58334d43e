import gzip
import os

import pytest

from worker.app import compression
from worker.app.compression import compress_file, decompress_file
from worker.app.deadline import Deadline
from worker.app.errors import CompressionError, StageTimeout


def test_compression_is_lossless_and_removes_input(tmp_path):
    source = tmp_path / "acme.sql"
    payload = b"COPY acme.patients FROM stdin;\n" + os.urandom(3 * compression.CHUNK_SIZE + 17)
    source.write_bytes(payload)

    archive = compress_file(source)

    assert archive == tmp_path / "acme.sql.gz"
    assert not source.exists()
    restored = decompress_file(archive, tmp_path / "restored.sql")
    assert restored.read_bytes() == payload


def test_empty_dump_compresses(tmp_path):
    source = tmp_path / "empty.sql"
    source.write_bytes(b"")
    archive = compress_file(source)
    assert gzip.decompress(archive.read_bytes()) == b""


def test_stream_error_keeps_input_and_discards_output(tmp_path, monkeypatch):
    source = tmp_path / "acme.sql"
    source.write_bytes(b"x" * (2 * compression.CHUNK_SIZE))
    real_open = gzip.open

    class BrokenWriter:
        def __init__(self, path, mode, compresslevel):
            self.inner = real_open(path, mode, compresslevel=compresslevel)

        def write(self, chunk):
            raise OSError("No space left on device")

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            self.inner.close()
            return False

    monkeypatch.setattr(compression.gzip, "open", BrokenWriter)

    with pytest.raises(CompressionError, match="No space left"):
        compress_file(source)

    assert source.read_bytes() == b"x" * (2 * compression.CHUNK_SIZE)
    assert not (tmp_path / "acme.sql.gz").exists()


def test_missing_input(tmp_path):
    with pytest.raises(CompressionError):
        compress_file(tmp_path / "missing.sql")
    assert not (tmp_path / "missing.sql.gz").exists()


def test_expired_deadline(tmp_path):
    source = tmp_path / "acme.sql"
    source.write_bytes(b"data")
    deadline = Deadline("compression", 0)

    with pytest.raises(StageTimeout, match="compression"):
        compress_file(source, deadline)

    assert source.exists()
    assert not (tmp_path / "acme.sql.gz").exists()
