import calendar
import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import PolicyNotFoundError
from .identifiers import COLD, INFREQUENT_ACCESS, STANDARD, validate_tenant_id
from .models import backup_retention_policies
from .schedules import deactivate_schedules, upsert_schedule

logger = logging.getLogger(__name__)

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"

CADENCES = (DAILY, WEEKLY, MONTHLY)

# cadence -> (policy column, storage tier)
CADENCE_POLICY = {
    DAILY: ("daily_retention_days", STANDARD),
    WEEKLY: ("weekly_retention_weeks", INFREQUENT_ACCESS),
    MONTHLY: ("monthly_retention_months", COLD),
}

DAILY_HOUR = 2
WEEKLY_HOUR = 3
WEEKLY_WEEKDAY = calendar.SUNDAY
MONTHLY_HOUR = 4


def compute_next_run(cadence: str, from_: datetime | None = None) -> datetime:
    """Return the next run time for ``cadence`` strictly after ``from_``.

    daily:   02:00 on the following day
    weekly:  the first Sunday 03:00 after ``from_`` (never more than a week out)
    monthly: 04:00 on the first day of the following month
    """
    base = from_ if from_ is not None else datetime.utcnow()
    if cadence == DAILY:
        day = base.date() + timedelta(days=1)
        return datetime(day.year, day.month, day.day, DAILY_HOUR)
    if cadence == WEEKLY:
        days_ahead = (WEEKLY_WEEKDAY - base.weekday()) % 7
        day = base.date() + timedelta(days=days_ahead)
        candidate = datetime(day.year, day.month, day.day, WEEKLY_HOUR)
        if candidate <= base:
            candidate += timedelta(days=7)
        return candidate
    if cadence == MONTHLY:
        if base.month == 12:
            return datetime(base.year + 1, 1, 1, MONTHLY_HOUR)
        return datetime(base.year, base.month + 1, 1, MONTHLY_HOUR)
    raise ValueError(f"unknown backup cadence {cadence!r}")


def get_policy(session: Session, tier_id: str) -> dict:
    row = session.execute(
        select(backup_retention_policies).where(backup_retention_policies.c.tier_id == tier_id)
    ).first()
    if row is None:
        raise PolicyNotFoundError(f"no backup retention policy for tier {tier_id!r}")
    return dict(row._mapping)


def provision_schedules(
    session: Session, tenant_id: str, tier_id: str, now: datetime | None = None
) -> list[str]:
    """Derive a tenant's backup schedules from its subscription tier.

    Best effort: a tier without a retention policy is logged and skipped so
    tenant creation is never blocked. Cadences the tier does not retain are
    deactivated, which makes re-provisioning after a tier change safe.
    Returns the cadences that are now active.
    """
    validate_tenant_id(tenant_id)
    try:
        policy = get_policy(session, tier_id)
    except PolicyNotFoundError as exc:
        logger.warning("Tenant %s left unscheduled: %s", tenant_id, exc.job_message())
        return []

    now = now or datetime.utcnow()
    active, dropped = [], []
    for cadence in CADENCES:
        column, storage_tier = CADENCE_POLICY[cadence]
        if (policy[column] or 0) > 0:
            upsert_schedule(session, tenant_id, cadence, storage_tier, compute_next_run(cadence, now))
            active.append(cadence)
        else:
            dropped.append(cadence)
    deactivate_schedules(session, tenant_id, dropped)

    logger.info("Backup schedules for tenant %s (tier %s): %s", tenant_id, tier_id, ", ".join(active) or "none")
    return active
