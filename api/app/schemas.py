from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BackupRequest(BaseModel):
    backup_type: str = "full"
    storage_tier: str = "standard"


class BackupJobOut(BaseModel):
    id: int
    tenant_id: str
    backup_type: str
    storage_tier: str
    status: str
    backup_size_bytes: Optional[int] = None
    backup_location: Optional[str] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BackupStatsOut(BaseModel):
    total: int
    completed: int
    failed: int
    total_bytes: int
    last_completed_at: Optional[datetime] = None


class TenantBackupSummaryOut(BackupStatsOut):
    tenant_id: str
    tenant_name: str


class ScheduleOut(BaseModel):
    id: int
    tenant_id: str
    schedule_type: str
    storage_tier: str
    is_active: bool
    last_run_at: Optional[datetime] = None
    next_run_at: datetime

    class Config:
        from_attributes = True


class ProvisionRequest(BaseModel):
    tier_id: str


class ProvisionOut(BaseModel):
    tenant_id: str
    tier_id: str
    cadences: list[str]
