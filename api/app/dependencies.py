from fastapi import HTTPException

from worker.app.errors import (
    BackupError,
    DispatchError,
    InvalidStorageTier,
    InvalidTenantIdentifier,
    JobNotFoundError,
    TenantNotFoundError,
    UnsupportedBackupKind,
)
from worker.app.manager import BackupJobManager
from worker.app.tasks import enqueue_backup

from .db import SessionLocal

ERROR_STATUS = {
    TenantNotFoundError: 404,
    JobNotFoundError: 404,
    DispatchError: 503,
    InvalidTenantIdentifier: 422,
    InvalidStorageTier: 422,
    UnsupportedBackupKind: 422,
}


def get_manager() -> BackupJobManager:
    return BackupJobManager(SessionLocal, enqueue_backup)


def to_http_error(exc: BackupError) -> HTTPException:
    status = ERROR_STATUS.get(type(exc), 500)
    return HTTPException(status_code=status, detail=exc.job_message())
