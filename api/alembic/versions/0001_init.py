"""init

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=63), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("subscription_tier", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "backup_jobs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(length=63), nullable=False),
        sa.Column("backup_type", sa.String(length=50), nullable=False),
        sa.Column("storage_tier", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("backup_size_bytes", sa.BigInteger, nullable=True),
        sa.Column("backup_location", sa.String(length=1024), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("started_at", sa.DateTime, nullable=True),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_index("ix_backup_jobs_tenant_id", "backup_jobs", ["tenant_id"])
    op.create_table(
        "backup_schedules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(length=63), nullable=False),
        sa.Column("schedule_type", sa.String(length=20), nullable=False),
        sa.Column("storage_tier", sa.String(length=50), nullable=False),
        sa.Column("is_active", sa.Boolean, default=True, nullable=False),
        sa.Column("last_run_at", sa.DateTime, nullable=True),
        sa.Column("next_run_at", sa.DateTime, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint("tenant_id", "schedule_type", name="uq_backup_schedules_tenant_type"),
    )
    op.create_table(
        "backup_retention_policies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tier_id", sa.String(length=100), nullable=False, unique=True),
        sa.Column("daily_retention_days", sa.Integer, default=0, nullable=False),
        sa.Column("weekly_retention_weeks", sa.Integer, default=0, nullable=False),
        sa.Column("monthly_retention_months", sa.Integer, default=0, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("backup_retention_policies")
    op.drop_table("backup_schedules")
    op.drop_index("ix_backup_jobs_tenant_id", table_name="backup_jobs")
    op.drop_table("backup_jobs")
    op.drop_table("tenants")
