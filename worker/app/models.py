from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

metadata = MetaData()

JOB_PENDING = "pending"
JOB_RUNNING = "running"
JOB_COMPLETED = "completed"
JOB_FAILED = "failed"

tenants = Table(
    "tenants",
    metadata,
    Column("id", String(63), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("subscription_tier", String(100)),
    Column("status", String(50), nullable=False, server_default="active"),
    Column("created_at", DateTime, server_default=func.now()),
)

backup_jobs = Table(
    "backup_jobs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", String(63), nullable=False, index=True),
    Column("backup_type", String(50), nullable=False),
    Column("storage_tier", String(50), nullable=False),
    Column("status", String(50), nullable=False),
    Column("backup_size_bytes", BigInteger),
    Column("backup_location", String(1024)),
    Column("error_message", Text),
    Column("started_at", DateTime),
    Column("completed_at", DateTime),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now(), onupdate=func.now()),
)

backup_schedules = Table(
    "backup_schedules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", String(63), nullable=False),
    Column("schedule_type", String(20), nullable=False),
    Column("storage_tier", String(50), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("last_run_at", DateTime),
    Column("next_run_at", DateTime, nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
    Column("updated_at", DateTime, server_default=func.now(), onupdate=func.now()),
    UniqueConstraint("tenant_id", "schedule_type", name="uq_backup_schedules_tenant_type"),
)

backup_retention_policies = Table(
    "backup_retention_policies",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tier_id", String(100), nullable=False, unique=True),
    Column("daily_retention_days", Integer, nullable=False, default=0),
    Column("weekly_retention_weeks", Integer, nullable=False, default=0),
    Column("monthly_retention_months", Integer, nullable=False, default=0),
    Column("created_at", DateTime, server_default=func.now()),
)
