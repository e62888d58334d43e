from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .models import backup_schedules

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_schedule(
    session: Session, tenant_id: str, cadence: str, storage_tier: str, next_run_at: datetime
) -> None:
    """Create or refresh the single schedule row for (tenant, cadence)."""
    dialect = session.get_bind().dialect.name
    try:
        dialect_insert = _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise ValueError(f"schedule upsert is not supported on {dialect}") from None

    now = datetime.utcnow()
    stmt = dialect_insert(backup_schedules).values(
        tenant_id=tenant_id,
        schedule_type=cadence,
        storage_tier=storage_tier,
        is_active=True,
        next_run_at=next_run_at,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[backup_schedules.c.tenant_id, backup_schedules.c.schedule_type],
        set_={
            "storage_tier": stmt.excluded.storage_tier,
            "next_run_at": stmt.excluded.next_run_at,
            "is_active": True,
            "updated_at": now,
        },
    )
    session.execute(stmt)


def deactivate_schedules(session: Session, tenant_id: str, cadences) -> int:
    if not cadences:
        return 0
    result = session.execute(
        update(backup_schedules)
        .where(
            backup_schedules.c.tenant_id == tenant_id,
            backup_schedules.c.schedule_type.in_(list(cadences)),
            backup_schedules.c.is_active.is_(True),
        )
        .values(is_active=False, updated_at=datetime.utcnow())
    )
    return result.rowcount


def list_schedules(session: Session, tenant_id: str) -> list[dict]:
    rows = session.execute(
        select(backup_schedules)
        .where(backup_schedules.c.tenant_id == tenant_id)
        .order_by(backup_schedules.c.schedule_type)
    )
    return [dict(row._mapping) for row in rows]


def due_schedules(session: Session, now: datetime) -> list[dict]:
    rows = session.execute(
        select(backup_schedules)
        .where(backup_schedules.c.is_active.is_(True), backup_schedules.c.next_run_at <= now)
        .order_by(backup_schedules.c.next_run_at, backup_schedules.c.id)
    )
    return [dict(row._mapping) for row in rows]


def claim_schedule(session: Session, schedule: dict, now: datetime, next_run_at: datetime) -> bool:
    """Advance a due schedule only if nobody else advanced it first.

    The update is conditional on the ``next_run_at`` value that was read, so
    of two overlapping sweeps exactly one sees a matched row.
    """
    result = session.execute(
        update(backup_schedules)
        .where(
            backup_schedules.c.id == schedule["id"],
            backup_schedules.c.is_active.is_(True),
            backup_schedules.c.next_run_at == schedule["next_run_at"],
        )
        .values(last_run_at=now, next_run_at=next_run_at, updated_at=now)
    )
    return result.rowcount == 1


def release_claim(session: Session, schedule: dict, claimed_next_run_at: datetime) -> bool:
    result = session.execute(
        update(backup_schedules)
        .where(
            backup_schedules.c.id == schedule["id"],
            backup_schedules.c.next_run_at == claimed_next_run_at,
        )
        .values(
            last_run_at=schedule["last_run_at"],
            next_run_at=schedule["next_run_at"],
            updated_at=datetime.utcnow(),
        )
    )
    return result.rowcount == 1
