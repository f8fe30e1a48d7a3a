"""
S3-compatible storage backend.
Supports AWS S3 and S3-compatible services like MinIO.
"""

import logging
from typing import Any, AsyncGenerator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings
from app.core.exceptions import StorageException, StoredFileNotFoundException
from app.models.asset import StorageKind
from app.storage.base import ObjectStream, StorageBackend

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB
MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


def _error_code(error: ClientError) -> str | None:
    return error.response.get("Error", {}).get("Code")


class S3StorageBackend(StorageBackend):
    """
    S3-compatible object storage implementation.

    Objects are addressed by (bucket, key). The default bucket comes from
    S3_BUCKET_NAME; every read/delete accepts the bucket recorded on an
    asset so that records written against another bucket stay reachable.
    """

    kind = StorageKind.REMOTE

    def __init__(
        self,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
        client: Any = None,
    ):
        """
        Initialize S3 storage backend.

        Args:
            endpoint_url: S3 endpoint URL (for MinIO, custom S3-compatible services)
            access_key: AWS access key ID
            secret_key: AWS secret access key
            bucket_name: Default bucket name
            region: AWS region
            client: Pre-built boto3 S3 client (skips client construction)
        """
        settings = get_settings()
        self.endpoint_url = endpoint_url or settings.S3_ENDPOINT_URL
        self.bucket_name = bucket_name or settings.S3_BUCKET_NAME
        self.region = region or settings.S3_REGION

        if client is not None:
            self.client = client
            return

        config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=access_key or settings.S3_ACCESS_KEY,
            aws_secret_access_key=secret_key or settings.S3_SECRET_KEY,
            region_name=self.region,
            config=config,
        )

    async def upload_bytes(
        self,
        data: bytes,
        path: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Put raw bytes as an object in the default bucket."""
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ContentType=content_type,
                Metadata=metadata or {},
            )
            logger.debug(f"Put s3://{self.bucket_name}/{path} ({len(data)} bytes)")
            return path

        except (ClientError, BotoCoreError) as e:
            raise StorageException(
                message=f"Failed to upload file to S3: {str(e)}",
                details={"path": path, "bucket": self.bucket_name},
            )

    def _get_object(self, path: str, bucket: str) -> dict:
        try:
            return self.client.get_object(Bucket=bucket, Key=path)
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                raise StoredFileNotFoundException(path)
            raise StorageException(
                message=f"Failed to download file from S3: {str(e)}",
                details={"path": path, "bucket": bucket},
            )
        except BotoCoreError as e:
            raise StorageException(
                message=f"Failed to download file from S3: {str(e)}",
                details={"path": path, "bucket": bucket},
            )

    async def _iter_body(self, body: Any) -> AsyncGenerator[bytes, None]:
        try:
            while chunk := body.read(CHUNK_SIZE):
                yield chunk
        finally:
            body.close()

    async def open_stream(self, path: str, bucket: str | None = None) -> ObjectStream:
        """Fetch the object eagerly and hand back its body as a chunk stream."""
        response = self._get_object(path, bucket or self.bucket_name)
        return ObjectStream(
            chunks=self._iter_body(response["Body"]),
            content_type=response.get("ContentType"),
            size=response.get("ContentLength"),
        )

    async def delete(self, path: str, bucket: str | None = None) -> bool:
        """Delete an object. Returns False if it was not there."""
        bucket = bucket or self.bucket_name
        if not await self.exists(path, bucket):
            return False

        try:
            self.client.delete_object(Bucket=bucket, Key=path)
            return True

        except (ClientError, BotoCoreError) as e:
            raise StorageException(
                message=f"Failed to delete file from S3: {str(e)}",
                details={"path": path, "bucket": bucket},
            )

    async def exists(self, path: str, bucket: str | None = None) -> bool:
        """Check if an object exists."""
        bucket = bucket or self.bucket_name
        try:
            self.client.head_object(Bucket=bucket, Key=path)
            return True
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                return False
            raise StorageException(
                message=f"Failed to check object in S3: {str(e)}",
                details={"path": path, "bucket": bucket},
            )

    def get_url(self, path: str, bucket: str | None = None) -> str:
        """
        Get the direct object URL.

        Virtual-hosted AWS style by default, path style when a custom
        endpoint (MinIO etc.) is configured.
        """
        bucket = bucket or self.bucket_name
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{bucket}/{path}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{path}"
