from datetime import datetime

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.orm import Session

from .errors import InvalidJobTransition, JobNotFoundError
from .models import (
    JOB_COMPLETED,
    JOB_FAILED,
    JOB_PENDING,
    JOB_RUNNING,
    backup_jobs,
    tenants,
)

# status -> statuses it may be entered from
ALLOWED_TRANSITIONS = {
    JOB_RUNNING: (JOB_PENDING,),
    JOB_COMPLETED: (JOB_RUNNING,),
    JOB_FAILED: (JOB_RUNNING,),
}


def create_job(session: Session, tenant_id: str, backup_type: str, storage_tier: str) -> dict:
    now = datetime.utcnow()
    result = session.execute(
        insert(backup_jobs).values(
            tenant_id=tenant_id,
            backup_type=backup_type,
            storage_tier=storage_tier,
            status=JOB_PENDING,
            created_at=now,
            updated_at=now,
        )
    )
    return get_job(session, result.inserted_primary_key[0])


def get_job(session: Session, job_id: int) -> dict:
    row = session.execute(select(backup_jobs).where(backup_jobs.c.id == job_id)).first()
    if row is None:
        raise JobNotFoundError(f"backup job {job_id} does not exist")
    return dict(row._mapping)


def _transition(session: Session, job_id: int, status: str, **fields) -> None:
    result = session.execute(
        update(backup_jobs)
        .where(backup_jobs.c.id == job_id, backup_jobs.c.status.in_(ALLOWED_TRANSITIONS[status]))
        .values(status=status, updated_at=datetime.utcnow(), **fields)
    )
    if result.rowcount != 1:
        current = get_job(session, job_id)
        raise InvalidJobTransition(
            f"backup job {job_id} cannot move from {current['status']} to {status}"
        )


def mark_running(session: Session, job_id: int) -> None:
    _transition(session, job_id, JOB_RUNNING, started_at=datetime.utcnow())


def mark_completed(session: Session, job_id: int, size_bytes: int, location: str) -> None:
    _transition(
        session,
        job_id,
        JOB_COMPLETED,
        backup_size_bytes=size_bytes,
        backup_location=location,
        completed_at=datetime.utcnow(),
    )


def mark_failed(session: Session, job_id: int, message: str) -> None:
    _transition(session, job_id, JOB_FAILED, error_message=message, completed_at=datetime.utcnow())


def list_jobs(session: Session, tenant_id: str, limit: int = 50) -> list[dict]:
    rows = session.execute(
        select(backup_jobs)
        .where(backup_jobs.c.tenant_id == tenant_id)
        .order_by(backup_jobs.c.created_at.desc(), backup_jobs.c.id.desc())
        .limit(limit)
    )
    return [dict(row._mapping) for row in rows]


def _stats_columns(jobs=backup_jobs):
    return (
        func.count(jobs.c.id).label("total"),
        func.count(case((jobs.c.status == JOB_COMPLETED, 1))).label("completed"),
        func.count(case((jobs.c.status == JOB_FAILED, 1))).label("failed"),
        func.coalesce(func.sum(jobs.c.backup_size_bytes), 0).label("total_bytes"),
        func.max(case((jobs.c.status == JOB_COMPLETED, jobs.c.completed_at))).label(
            "last_completed_at"
        ),
    )


def job_stats(session: Session, tenant_id: str) -> dict:
    row = session.execute(
        select(*_stats_columns()).where(backup_jobs.c.tenant_id == tenant_id)
    ).one()
    return dict(row._mapping)


def tenant_summaries(session: Session) -> list[dict]:
    rows = session.execute(
        select(tenants.c.id.label("tenant_id"), tenants.c.name.label("tenant_name"), *_stats_columns())
        .select_from(tenants.outerjoin(backup_jobs, backup_jobs.c.tenant_id == tenants.c.id))
        .group_by(tenants.c.id, tenants.c.name)
        .order_by(tenants.c.name)
    )
    return [dict(row._mapping) for row in rows]


def stale_running_jobs(session: Session, started_before: datetime) -> list[dict]:
    rows = session.execute(
        select(backup_jobs).where(
            backup_jobs.c.status == JOB_RUNNING, backup_jobs.c.started_at < started_before
        )
    )
    return [dict(row._mapping) for row in rows]


def stale_pending_jobs(session: Session, created_before: datetime) -> list[dict]:
    rows = session.execute(
        select(backup_jobs).where(
            backup_jobs.c.status == JOB_PENDING, backup_jobs.c.created_at < created_before
        )
    )
    return [dict(row._mapping) for row in rows]
