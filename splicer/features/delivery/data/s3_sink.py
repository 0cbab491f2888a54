import logging
from pathlib import Path
from typing import Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from splicer.core.common.enums import OutputContainer
from splicer.core.config.settings import settings
from splicer.core.errors import DeliveryUploadFailed
from splicer.core.jobs.models import Job
from ..domain.interfaces import IResultSink
from ..domain.models import DeliveryResult, Finalizer

logger = logging.getLogger(__name__)


def get_s3_client(region: str):
    """Create S3 client. Credentials come from the standard AWS environment/config chain."""
    return boto3.client("s3", region_name=region)


def public_url(bucket: str, key: str, region: str) -> str:
    if region == "us-east-1":
        return f"https://{bucket}.s3.amazonaws.com/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


class S3Sink(IResultSink):
    """
    Uploads the artifact to S3 and returns a reference URL instead of the bytes.
    """

    def __init__(self, bucket: Optional[str] = None, prefix: Optional[str] = None,
                 region: Optional[str] = None, container: Optional[OutputContainer] = None,
                 client=None):
        self.bucket = bucket or settings.S3_BUCKET
        self.prefix = (settings.S3_PREFIX if prefix is None else prefix).strip("/")
        self.region = region or settings.AWS_REGION
        self.container = container or OutputContainer(settings.OUTPUT_CONTAINER)
        self._client = client

        if not self.bucket:
            raise ValueError("S3 delivery requires S3_BUCKET to be set")

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client(self.region)
        return self._client

    def object_key(self, job: Job) -> str:
        name = f"{job.id}{self.container.suffix}"
        return f"{self.prefix}/{name}" if self.prefix else name

    def deliver(self, job: Job, artifact: Path, finalize: Finalizer) -> DeliveryResult:
        key = self.object_key(job)
        logger.info(f"Uploading job {job.id} artifact to s3://{self.bucket}/{key}")

        try:
            self.client.upload_file(
                str(artifact),
                self.bucket,
                key,
                ExtraArgs={"ContentType": self.container.media_type},
            )
        except (S3UploadFailedError, BotoCoreError, ClientError, OSError) as e:
            logger.error(f"S3 upload failed for job {job.id}: {e}")
            raise DeliveryUploadFailed(f"Upload to s3://{self.bucket}/{key} failed: {e}") from e

        size = artifact.stat().st_size
        # The remote copy is durable; the local workspace can go
        finalize(None)

        return DeliveryResult(
            job_id=job.id,
            media_type="application/json",
            url=public_url(self.bucket, key, self.region),
            size_bytes=size,
        )
