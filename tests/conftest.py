import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_tenantvault.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

import pathlib  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine, insert  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from worker.app.config import Settings  # noqa: E402
from worker.app.dump import SchemaDumpEngine  # noqa: E402
from worker.app.models import backup_retention_policies, metadata, tenants  # noqa: E402
from worker.app.pipeline import BackupPipeline  # noqa: E402
from worker.app.storage import S3Uploader  # noqa: E402

DUMP_SQL = (
    b"--\n-- PostgreSQL database dump\n--\n"
    b"CREATE TABLE acme.patients (id integer NOT NULL, name text);\n"
    b"COPY acme.patients (id, name) FROM stdin;\n1\tAda\n2\tGrace\n\\.\n"
)


class FakeCatalog:
    def __init__(self, schemas):
        self.schemas = set(schemas)
        self.checked = []

    def schema_exists(self, tenant_id):
        self.checked.append(tenant_id)
        return tenant_id in self.schemas

    def table_count(self, tenant_id):
        return 1


class FakeRunner:
    def __init__(self, payload=DUMP_SQL):
        self.payload = payload
        self.calls = []

    def run(self, tenant_id, output_path, deadline):
        self.calls.append(tenant_id)
        pathlib.Path(output_path).write_bytes(self.payload)


class FakeS3Client:
    def __init__(self, error=None):
        self.error = error
        self.objects = {}
        self.extra_args = {}

    def upload_file(self, filename, bucket, key, ExtraArgs=None, Callback=None):
        if self.error is not None:
            raise self.error
        data = pathlib.Path(filename).read_bytes()
        if Callback is not None:
            Callback(len(data))
        self.objects[(bucket, key)] = data
        self.extra_args[(bucket, key)] = ExtraArgs


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'tenantvault.db'}")
    metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def add_tenant(session_factory):
    def _add(tenant_id, name=None, tier="basic-tier"):
        with session_factory.begin() as session:
            session.execute(
                insert(tenants).values(id=tenant_id, name=name or tenant_id.title(), subscription_tier=tier)
            )

    return _add


@pytest.fixture
def add_policy(session_factory):
    def _add(tier_id, daily=0, weekly=0, monthly=0):
        with session_factory.begin() as session:
            session.execute(
                insert(backup_retention_policies).values(
                    tier_id=tier_id,
                    daily_retention_days=daily,
                    weekly_retention_weeks=weekly,
                    monthly_retention_months=monthly,
                )
            )

    return _add


@pytest.fixture
def worker_settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        backup_work_dir=str(tmp_path / "work"),
        backup_bucket="test-bucket",
        dump_timeout_seconds=30,
        compress_timeout_seconds=30,
        upload_timeout_seconds=30,
    )


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def make_pipeline(session_factory, worker_settings, s3_client):
    def _make(schemas=("acme",), runner=None, client=None):
        engine = SchemaDumpEngine(FakeCatalog(schemas), runner or FakeRunner())
        uploader = S3Uploader(client or s3_client, worker_settings.backup_bucket, "backups")
        return BackupPipeline(session_factory, engine, uploader, worker_settings)

    return _make
