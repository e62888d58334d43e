import pytest
from sqlalchemy import func, select

from worker.app.errors import (
    DispatchError,
    InvalidStorageTier,
    InvalidTenantIdentifier,
    TenantNotFoundError,
    UnsupportedBackupKind,
)
from worker.app.manager import BackupJobManager
from worker.app.models import backup_jobs


def _job_count(session_factory):
    with session_factory() as session:
        return session.execute(select(func.count()).select_from(backup_jobs)).scalar_one()


def test_create_backup_queues_the_job(session_factory, add_tenant):
    add_tenant("acme")
    queued = []

    job = BackupJobManager(session_factory, queued.append).create_backup("acme", storage_tier="s3_ia")

    assert job["status"] == "pending"
    assert job["storage_tier"] == "infrequent-access"
    assert queued == [job["id"]]


@pytest.mark.parametrize(
    "args, error",
    [
        (("nobody",), TenantNotFoundError),
        (("acme", "incremental"), UnsupportedBackupKind),
        (("acme", "full", "tape"), InvalidStorageTier),
        (("acme'; --",), InvalidTenantIdentifier),
    ],
)
def test_rejected_requests_create_no_job(session_factory, add_tenant, args, error):
    add_tenant("acme")
    queued = []

    with pytest.raises(error):
        BackupJobManager(session_factory, queued.append).create_backup(*args)

    assert queued == []
    assert _job_count(session_factory) == 0


def test_enqueue_failure_leaves_job_pending(session_factory, add_tenant):
    add_tenant("acme")

    def enqueue(job_id):
        raise ConnectionError("redis down")

    manager = BackupJobManager(session_factory, enqueue)
    with pytest.raises(DispatchError) as info:
        manager.create_backup("acme")

    assert isinstance(info.value.__cause__, ConnectionError)
    assert info.value.job_message().startswith("DispatchError:")
    (pending,) = manager.get_backup_history("acme")
    assert pending["status"] == "pending"
    assert info.value.job["id"] == pending["id"]


def test_provision_and_list_schedules(session_factory, add_policy):
    add_policy("basic-tier", daily=7, weekly=0, monthly=0)
    manager = BackupJobManager(session_factory, lambda job_id: None)

    assert manager.provision_schedules("acme", "basic-tier") == ["daily"]
    schedules = manager.get_schedules("acme")

    assert [(s["schedule_type"], s["is_active"]) for s in schedules] == [("daily", True)]


def test_summary_includes_tenants_without_jobs(session_factory, add_tenant):
    add_tenant("acme")
    add_tenant("globex")
    manager = BackupJobManager(session_factory, lambda job_id: None)
    manager.create_backup("acme")

    summary = {row["tenant_id"]: row["total"] for row in manager.get_all_tenants_summary()}

    assert summary == {"acme": 1, "globex": 0}
