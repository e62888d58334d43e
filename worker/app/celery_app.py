from celery import Celery

from .config import settings

celery_app = Celery(
    "tenantvault",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["worker.app.tasks"],
)

celery_app.conf.task_routes = {
    "worker.app.tasks.*": {"queue": "tenantvault"},
}
celery_app.conf.task_acks_late = True
celery_app.conf.worker_prefetch_multiplier = 1

celery_app.conf.beat_schedule = {
    "backup-sweep": {
        "task": "worker.app.tasks.run_backup_sweep",
        "schedule": float(settings.sweep_interval_seconds),
    },
    "reap-stale-backup-jobs": {
        "task": "worker.app.tasks.reap_stale_jobs",
        "schedule": float(settings.sweep_interval_seconds),
    },
}
