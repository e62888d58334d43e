import logging
from datetime import datetime

from sqlalchemy import select

from . import jobs as job_store
from .errors import DispatchError, TenantNotFoundError, UnsupportedBackupKind
from .identifiers import normalize_storage_tier, validate_tenant_id
from .models import tenants
from .retention import provision_schedules
from .schedules import list_schedules
from .sweep import SweepResult, run_sweep

logger = logging.getLogger(__name__)

PRODUCIBLE_KINDS = ("full",)


class BackupJobManager:
    """Entry point for backup requests and queries.

    ``session_factory`` is a sessionmaker; every operation opens its own
    session and closes it before returning. ``enqueue`` hands a job id to
    the task queue.
    """

    def __init__(self, session_factory, enqueue):
        self.session_factory = session_factory
        self.enqueue = enqueue

    def create_backup(self, tenant_id: str, kind: str = "full", storage_tier: str = "standard") -> dict:
        validate_tenant_id(tenant_id)
        if kind not in PRODUCIBLE_KINDS:
            raise UnsupportedBackupKind(f"backup kind {kind!r} is not supported")
        tier = normalize_storage_tier(storage_tier)

        with self.session_factory.begin() as session:
            exists = session.execute(select(tenants.c.id).where(tenants.c.id == tenant_id)).first()
            if exists is None:
                raise TenantNotFoundError(f"tenant '{tenant_id}' does not exist")
            job = job_store.create_job(session, tenant_id, kind, tier)

        try:
            self.enqueue(job["id"])
        except Exception as exc:
            logger.warning("Backup job %s for tenant %s is pending but was not queued: %s", job["id"], tenant_id, exc)
            raise DispatchError(f"backup job {job['id']} was created but not queued: {exc}", job) from exc
        logger.info("Backup job %s queued for tenant %s (%s)", job["id"], tenant_id, tier)
        return job

    def get_job(self, job_id: int) -> dict:
        with self.session_factory() as session:
            return job_store.get_job(session, job_id)

    def get_backup_history(self, tenant_id: str, limit: int = 50) -> list[dict]:
        validate_tenant_id(tenant_id)
        with self.session_factory() as session:
            return job_store.list_jobs(session, tenant_id, limit)

    def get_backup_stats(self, tenant_id: str) -> dict:
        validate_tenant_id(tenant_id)
        with self.session_factory() as session:
            return job_store.job_stats(session, tenant_id)

    def get_all_tenants_summary(self) -> list[dict]:
        with self.session_factory() as session:
            return job_store.tenant_summaries(session)

    def get_schedules(self, tenant_id: str) -> list[dict]:
        validate_tenant_id(tenant_id)
        with self.session_factory() as session:
            return list_schedules(session, tenant_id)

    def provision_schedules(self, tenant_id: str, tier_id: str) -> list[str]:
        with self.session_factory.begin() as session:
            return provision_schedules(session, tenant_id, tier_id)

    def run_sweep(self, now: datetime | None = None) -> SweepResult:
        return run_sweep(self.session_factory, self.create_backup, now)
