import logging
import tempfile
from pathlib import Path

from celery.exceptions import SoftTimeLimitExceeded

from .compression import compress_file
from .deadline import Deadline
from .errors import BackupError, InvalidJobTransition
from .jobs import get_job, mark_completed, mark_failed, mark_running

logger = logging.getLogger(__name__)


class BackupPipeline:
    """Runs dump -> compress -> upload for one job and records the outcome.

    Expected failures (``BackupError`` and the task soft time limit) end the
    job in ``failed`` and are not raised. Anything else is recorded the same
    way and then re-raised so the task queue sees it.
    """

    def __init__(self, session_factory, dump_engine, uploader, settings):
        self.session_factory = session_factory
        self.dump_engine = dump_engine
        self.uploader = uploader
        self.settings = settings

    def run(self, job_id: int) -> dict:
        with self.session_factory.begin() as session:
            job = get_job(session, job_id)
            try:
                mark_running(session, job_id)
            except InvalidJobTransition:
                logger.info("Backup job %s is already %s; skipping", job_id, job["status"])
                return job

        logger.info("Backup job %s started for tenant %s", job_id, job["tenant_id"])
        try:
            size, location = self._execute(job)
        except BackupError as exc:
            logger.warning("Backup job %s for tenant %s failed: %s", job_id, job["tenant_id"], exc.job_message())
            self._finish_failed(job_id, exc.job_message())
        except SoftTimeLimitExceeded:
            logger.warning("Backup job %s hit the task time limit", job_id)
            self._finish_failed(job_id, "Timeout: backup job exceeded its time limit")
        except Exception as exc:
            logger.exception("Backup job %s crashed", job_id)
            self._finish_failed(job_id, f"{type(exc).__name__}: {exc}")
            raise
        else:
            with self.session_factory.begin() as session:
                mark_completed(session, job_id, size, location)
            logger.info("Backup job %s completed: %d bytes at %s", job_id, size, location)

        with self.session_factory() as session:
            return get_job(session, job_id)

    def _execute(self, job: dict) -> tuple[int, str]:
        job_id, tenant_id = job["id"], job["tenant_id"]
        settings = self.settings
        work_root = Path(settings.backup_work_dir)
        work_root.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix=f"backup-{job_id}-", dir=work_root) as workdir:
            dump_path = Path(workdir) / f"{tenant_id}.sql"
            self.dump_engine.dump(tenant_id, dump_path, Deadline("dump", settings.dump_timeout_seconds))
            archive = compress_file(
                dump_path,
                Deadline("compression", settings.compress_timeout_seconds),
                level=settings.compression_level,
            )
            size = archive.stat().st_size
            location = self.uploader.upload(
                archive,
                tenant_id,
                job_id,
                job["storage_tier"],
                Deadline("upload", settings.upload_timeout_seconds),
            )
        return size, location

    def _finish_failed(self, job_id: int, message: str) -> None:
        try:
            with self.session_factory.begin() as session:
                mark_failed(session, job_id, message)
        except InvalidJobTransition:
            # the reaper got there first
            logger.warning("Backup job %s was already finished; not recording %r", job_id, message)
