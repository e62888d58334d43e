import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .errors import DispatchError, InvalidJobTransition
from .jobs import mark_failed, stale_pending_jobs, stale_running_jobs
from .retention import compute_next_run
from .schedules import claim_schedule, due_schedules, release_claim

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    fired: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    errors: list = field(default_factory=list)


def run_sweep(session_factory, trigger, now: datetime | None = None) -> SweepResult:
    """Fire every due schedule once.

    Each schedule is claimed with a conditional update before ``trigger`` is
    called, so overlapping sweeps cannot fire the same run twice. A trigger
    that wrote no job puts the schedule's run times back; a job that was
    written but not dispatched keeps the claim and is left to the reaper.
    Every per-schedule error is collected in the result; none stops the sweep.
    """
    now = now or datetime.utcnow()
    result = SweepResult()

    with session_factory() as session:
        due = due_schedules(session, now)
    logger.info("Backup sweep at %s: %d schedule(s) due", now.isoformat(), len(due))

    for schedule in due:
        try:
            _fire_schedule(session_factory, trigger, schedule, now, result)
        except Exception as exc:
            logger.exception("Scheduled backup for %s/%s failed", schedule["tenant_id"], schedule["schedule_type"])
            result.errors.append((schedule["id"], f"{type(exc).__name__}: {exc}"))

    return result


def _fire_schedule(session_factory, trigger, schedule: dict, now: datetime, result: SweepResult) -> None:
    label = f"{schedule['tenant_id']}/{schedule['schedule_type']}"
    next_run_at = compute_next_run(schedule["schedule_type"], now)
    with session_factory.begin() as session:
        claimed = claim_schedule(session, schedule, now, next_run_at)
    if not claimed:
        logger.info("Schedule %s already claimed by another sweep", label)
        result.skipped.append(schedule["id"])
        return

    try:
        job = trigger(schedule["tenant_id"], "full", schedule["storage_tier"])
    except DispatchError as exc:
        # the job row exists and stays pending; releasing would create a second one
        logger.warning("Scheduled backup job %s for %s was not dispatched: %s", exc.job["id"], label, exc)
        result.errors.append((schedule["id"], exc.job_message()))
        return
    except Exception:
        with session_factory.begin() as session:
            release_claim(session, schedule, next_run_at)
        raise

    logger.info("Scheduled backup job %s created for %s", job["id"], label)
    result.fired.append(job["id"])


def reap_stale_jobs(session_factory, enqueue, hard_limit_seconds: int, grace_minutes: int, now: datetime | None = None) -> dict:
    """Fail jobs stuck in running and re-dispatch jobs stuck in pending."""
    now = now or datetime.utcnow()
    failed, redispatched = [], []

    with session_factory.begin() as session:
        for job in stale_running_jobs(session, now - timedelta(seconds=hard_limit_seconds)):
            try:
                mark_failed(session, job["id"], "Timeout: backup job exceeded its time limit")
            except InvalidJobTransition:
                continue
            failed.append(job["id"])
        pending = stale_pending_jobs(session, now - timedelta(minutes=grace_minutes))

    for job in pending:
        try:
            enqueue(job["id"])
        except Exception:
            logger.exception("Could not re-dispatch backup job %s", job["id"])
            continue
        redispatched.append(job["id"])

    if failed or redispatched:
        logger.warning("Reaped backup jobs: failed=%s redispatched=%s", failed, redispatched)
    return {"failed": failed, "redispatched": redispatched}
