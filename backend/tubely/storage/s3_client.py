"""
S3-compatible object storage client.

Uses boto3 against AWS S3 or any S3-compatible endpoint (R2, MinIO).

Two-phase access model:
- upload_file() stores the canonical object; only bucket + key are persisted
- get_presigned_read_url() mints a short-lived GET URL on every read
The bucket stays private - only presigned URLs can access objects.
"""
import logging
from datetime import datetime
from typing import Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import settings
from tubely.exceptions import SignError, UploadError
from tubely.utils.logging import log_storage_failure
from tubely.utils.metrics import storage_requests_total

logger = logging.getLogger(__name__)

# S3 batch delete supports max 1000 objects per call
DELETE_BATCH_SIZE = 1000


class S3Client:
    """
    S3-compatible client for video storage.

    Network I/O only; never touches the local filesystem except to read the
    file being uploaded.
    """

    def __init__(self, client=None, bucket: Optional[str] = None):
        """
        Initialize the client.

        Args:
            client: Pre-built boto3 S3 client (tests, custom sessions).
                When omitted one is created from settings.
            bucket: Default bucket (default from settings)
        """
        self._bucket = bucket or settings.s3_bucket
        self._client = client

        if self._client is not None:
            return

        try:
            # Unset credentials fall through to the default boto3 chain
            self._client = boto3.client(
                's3',
                endpoint_url=settings.s3_endpoint,
                aws_access_key_id=settings.s3_access_key,
                aws_secret_access_key=settings.s3_secret_key,
                region_name=settings.s3_region,
                config=Config(signature_version='s3v4')
            )
            logger.info(f"S3 client initialized for bucket: {self._bucket}")
        except (BotoCoreError, ValueError) as e:
            logger.error(f"Failed to initialize S3 client: {e}")

    @property
    def is_configured(self) -> bool:
        """Check if the boto3 client was created."""
        return self._client is not None

    @property
    def bucket(self) -> str:
        """Get default bucket name."""
        return self._bucket

    def upload_file(self, bucket: str, key: str, local_path: str, content_type: str) -> None:
        """
        Upload a finished local file.

        Not retried here; the caller owns the retry policy.

        Args:
            bucket: Target bucket
            key: Object key
            local_path: File to upload
            content_type: MIME type stored on the object

        Raises:
            UploadError: On network, auth, quota or local read failures
        """
        if not self.is_configured:
            storage_requests_total.labels(operation="upload", status="failed").inc()
            raise UploadError("Storage service not configured")

        try:
            with open(local_path, "rb") as body:
                self._client.put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (ClientError, BotoCoreError, OSError) as e:
            storage_requests_total.labels(operation="upload", status="failed").inc()
            log_storage_failure(logger, operation="upload", bucket=bucket, key=key, error=str(e))
            raise UploadError(f"Couldn't upload file to object storage: {e}") from e

        storage_requests_total.labels(operation="upload", status="success").inc()
        logger.debug(f"Uploaded {local_path} to {bucket}/{key}")

    def get_presigned_read_url(self, bucket: str, key: str, expiration: Optional[int] = None) -> str:
        """
        Generate a presigned GET URL for reading an object.

        The URL expires after the given time (default: settings.video_url_expiration,
        one hour). Expiry is enforced by the store, not locally.

        Args:
            bucket: Bucket holding the object
            key: Object key
            expiration: URL lifetime in seconds

        Returns:
            Presigned URL string

        Raises:
            SignError: If the bucket/key is malformed or the signer is misconfigured
        """
        if expiration is None:
            expiration = settings.video_url_expiration

        if not bucket or not key:
            storage_requests_total.labels(operation="presign", status="failed").inc()
            raise SignError("Couldn't sign URL: bucket and key are required")

        if not self.is_configured:
            storage_requests_total.labels(operation="presign", status="failed").inc()
            raise SignError("Storage service not configured")

        try:
            url = self._client.generate_presigned_url(
                ClientMethod='get_object',
                Params={
                    'Bucket': bucket,
                    'Key': key,
                },
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            storage_requests_total.labels(operation="presign", status="failed").inc()
            log_storage_failure(logger, operation="presign", bucket=bucket, key=key, error=str(e))
            raise SignError(f"Couldn't generate presigned URL: {e}") from e

        storage_requests_total.labels(operation="presign", status="success").inc()
        logger.debug(f"Generated presigned read URL for {bucket}/{key} (expires in {expiration}s)")
        return url

    def iter_objects(self, bucket: str, prefix: str = "") -> Iterator[tuple[str, datetime]]:
        """
        Yield (key, last_modified) for every object in the bucket, following pagination.

        Raises:
            ClientError: If listing fails
        """
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                yield obj["Key"], obj["LastModified"]

    def delete_objects_batch(self, bucket: str, object_keys: list[str]) -> tuple[int, int]:
        """
        Delete multiple objects from the bucket in batch.

        Handles lists longer than the S3 limit by chunking.

        Args:
            bucket: Bucket holding the objects
            object_keys: List of S3 object keys to delete

        Returns:
            Tuple of (successful_count, failed_count)
        """
        if not object_keys:
            return (0, 0)

        successful = 0
        failed = 0

        for i in range(0, len(object_keys), DELETE_BATCH_SIZE):
            batch = object_keys[i:i + DELETE_BATCH_SIZE]

            try:
                response = self._client.delete_objects(
                    Bucket=bucket,
                    Delete={
                        'Objects': [{'Key': key} for key in batch],
                        'Quiet': True  # Only return errors, not successes
                    }
                )
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Batch delete failed: {e}")
                storage_requests_total.labels(operation="delete", status="failed").inc()
                failed += len(batch)
                continue

            errors = response.get('Errors', [])
            successful += len(batch) - len(errors)
            failed += len(errors)
            storage_requests_total.labels(operation="delete", status="success").inc()

            for error in errors[:5]:  # Log first 5 errors
                logger.warning(
                    f"Failed to delete {error.get('Key')}: "
                    f"{error.get('Code')} - {error.get('Message')}"
                )
            if len(errors) > 5:
                logger.warning(f"... and {len(errors) - 5} more errors")

        logger.info(f"Batch delete complete: {successful} deleted, {failed} failed out of {len(object_keys)} total")
        return (successful, failed)
