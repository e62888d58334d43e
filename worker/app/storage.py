import logging
from pathlib import Path

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .deadline import Deadline
from .errors import UploadError
from .identifiers import STORAGE_CLASSES, normalize_storage_tier, validate_tenant_id

logger = logging.getLogger(__name__)

ARTIFACT_TYPE = "database-schema"


def object_key(prefix: str, tenant_id: str, job_id: int) -> str:
    """Object key for a job's artifact; the same job always maps to the same key."""
    validate_tenant_id(tenant_id)
    return f"{prefix.strip('/')}/{tenant_id}/{job_id}/{tenant_id}-full.sql.gz"


class S3Uploader:
    scheme = "s3"

    def __init__(self, client, bucket: str, prefix: str = "backups"):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def upload(self, path, tenant_id: str, job_id: int, storage_tier: str, deadline: Deadline | None = None) -> str:
        key = object_key(self.prefix, tenant_id, job_id)
        storage_class = STORAGE_CLASSES[normalize_storage_tier(storage_tier)]
        extra_args = {
            "StorageClass": storage_class,
            "ContentType": "application/gzip",
            "Metadata": {
                "tenant-id": tenant_id,
                "backup-job-id": str(job_id),
                "backup-type": ARTIFACT_TYPE,
            },
        }

        def progress(_bytes_sent):
            if deadline is not None:
                deadline.check()

        try:
            self.client.upload_file(str(Path(path)), self.bucket, key, ExtraArgs=extra_args, Callback=progress)
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            raise UploadError(f"upload of job {job_id} to {self.bucket}/{key} failed: {exc}") from exc

        location = f"{self.scheme}://{self.bucket}/{key}"
        logger.info("Uploaded backup for tenant %s to %s (%s)", tenant_id, location, storage_class)
        return location


def build_uploader(settings) -> S3Uploader:
    client = boto3.client(
        "s3",
        endpoint_url=settings.s3_endpoint_url,
        region_name=settings.aws_region,
        config=Config(
            connect_timeout=settings.s3_connect_timeout,
            read_timeout=settings.s3_read_timeout,
            retries={"max_attempts": 3, "mode": "standard"},
        ),
    )
    return S3Uploader(client, settings.backup_bucket, settings.backup_key_prefix)
