from celery.utils.log import get_task_logger

from .celery_app import celery_app
from .config import settings
from .db import SessionLocal
from .dump import SchemaCatalog, SchemaDumpEngine, build_runner
from .manager import BackupJobManager
from .pipeline import BackupPipeline
from .storage import build_uploader
from .sweep import reap_stale_jobs as reap

logger = get_task_logger(__name__)


def enqueue_backup(job_id: int) -> None:
    run_tenant_backup.delay(job_id)


def build_manager(session_factory=SessionLocal) -> BackupJobManager:
    return BackupJobManager(session_factory, enqueue_backup)


def build_pipeline(session_factory=SessionLocal) -> BackupPipeline:
    engine = SchemaDumpEngine(SchemaCatalog(session_factory), build_runner(settings))
    return BackupPipeline(session_factory, engine, build_uploader(settings), settings)


@celery_app.task(
    name="worker.app.tasks.run_tenant_backup",
    soft_time_limit=settings.job_soft_time_limit,
    time_limit=settings.job_time_limit,
)
def run_tenant_backup(job_id: int):
    job = build_pipeline().run(job_id)
    return {
        "job_id": job["id"],
        "status": job["status"],
        "size": job["backup_size_bytes"],
        "location": job["backup_location"],
    }


@celery_app.task(name="worker.app.tasks.run_backup_sweep")
def run_backup_sweep():
    result = build_manager().run_sweep()
    if result.errors:
        logger.warning("Backup sweep finished with %d error(s): %s", len(result.errors), result.errors)
    return {"fired": result.fired, "skipped": result.skipped, "errors": len(result.errors)}


@celery_app.task(name="worker.app.tasks.reap_stale_jobs")
def reap_stale_jobs():
    return reap(
        SessionLocal,
        enqueue_backup,
        hard_limit_seconds=settings.job_time_limit,
        grace_minutes=settings.dispatch_grace_minutes,
    )
