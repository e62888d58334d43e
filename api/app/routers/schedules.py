from fastapi import APIRouter, Depends

from worker.app.errors import BackupError
from worker.app.manager import BackupJobManager

from ..dependencies import get_manager, to_http_error
from ..schemas import ProvisionOut, ProvisionRequest, ScheduleOut

router = APIRouter(prefix="/tenants/{tenant_id}/backup-schedules", tags=["schedules"])


@router.get("/", response_model=list[ScheduleOut])
def list_schedules(tenant_id: str, manager: BackupJobManager = Depends(get_manager)):
    try:
        return manager.get_schedules(tenant_id)
    except BackupError as exc:
        raise to_http_error(exc) from exc


@router.post("/", response_model=ProvisionOut)
def provision(tenant_id: str, payload: ProvisionRequest, manager: BackupJobManager = Depends(get_manager)):
    try:
        cadences = manager.provision_schedules(tenant_id, payload.tier_id)
    except BackupError as exc:
        raise to_http_error(exc) from exc
    return {"tenant_id": tenant_id, "tier_id": payload.tier_id, "cadences": cadences}
