from fastapi import APIRouter, Depends, Query

from worker.app.errors import BackupError
from worker.app.manager import BackupJobManager

from ..config import settings
from ..dependencies import get_manager, to_http_error
from ..schemas import BackupJobOut, BackupRequest, BackupStatsOut, TenantBackupSummaryOut

router = APIRouter(tags=["backups"])


@router.post("/tenants/{tenant_id}/backups", response_model=BackupJobOut, status_code=202)
def create_backup(
    tenant_id: str,
    payload: BackupRequest | None = None,
    manager: BackupJobManager = Depends(get_manager),
):
    payload = payload or BackupRequest()
    try:
        return manager.create_backup(tenant_id, payload.backup_type, payload.storage_tier)
    except BackupError as exc:
        raise to_http_error(exc) from exc


@router.get("/tenants/{tenant_id}/backups", response_model=list[BackupJobOut])
def backup_history(
    tenant_id: str,
    limit: int = Query(50, ge=1, le=settings.backup_history_max_limit),
    manager: BackupJobManager = Depends(get_manager),
):
    try:
        return manager.get_backup_history(tenant_id, limit)
    except BackupError as exc:
        raise to_http_error(exc) from exc


@router.get("/tenants/{tenant_id}/backups/stats", response_model=BackupStatsOut)
def backup_stats(tenant_id: str, manager: BackupJobManager = Depends(get_manager)):
    try:
        return manager.get_backup_stats(tenant_id)
    except BackupError as exc:
        raise to_http_error(exc) from exc


@router.get("/backups/summary", response_model=list[TenantBackupSummaryOut])
def backup_summary(manager: BackupJobManager = Depends(get_manager)):
    return manager.get_all_tenants_summary()


@router.get("/backups/{job_id}", response_model=BackupJobOut)
def get_backup(job_id: int, manager: BackupJobManager = Depends(get_manager)):
    try:
        return manager.get_job(job_id)
    except BackupError as exc:
        raise to_http_error(exc) from exc
