"""
Retrieval dispatcher.
Streams a record's bytes from whichever backend holds them.
"""

import logging
from typing import Any

from app.core.exceptions import StoredFileNotFoundException
from app.models.asset import AssetRecord, StorageKind
from app.schemas.asset import record_to_response
from app.services.locator import ResolvedLocator, resolve_locator
from app.storage.base import ObjectStream, StorageBackend
from app.storage.local import LocalStorageBackend
from app.storage.s3 import S3StorageBackend

logger = logging.getLogger(__name__)


class RetrievalDispatcher:
    """Resolves records to locators and opens their bytes."""

    def __init__(self, local: LocalStorageBackend, remote: S3StorageBackend):
        self.local = local
        self.remote = remote

    def resolve(self, record: AssetRecord) -> ResolvedLocator:
        return resolve_locator(record, self.local.base_path, self.remote.bucket_name)

    def backend_for(self, locator: ResolvedLocator) -> StorageBackend:
        if locator.kind == StorageKind.LOCAL:
            return self.local
        return self.remote

    async def open(self, record: AssetRecord) -> ObjectStream:
        """
        Open a record's bytes for streaming.

        Raises:
            NotRetrievableException: Record has no usable locator
            StoredFileNotFoundException: Bytes are missing from the backend
            StorageException: Backend failed while fetching
        """
        locator = self.resolve(record)
        backend = self.backend_for(locator)
        stream = await backend.open_stream(locator.path, bucket=locator.bucket)
        if not stream.content_type:
            stream.content_type = record.mime_type
        logger.debug(f"Streaming {record.id} from {locator.kind.value} storage at {locator.path}")
        return stream

    async def describe(self, record: AssetRecord) -> dict[str, Any]:
        """Locator and public URL of a record, without its bytes."""
        locator = self.resolve(record)
        if locator.kind == StorageKind.LOCAL and not await self.local.exists(locator.path):
            raise StoredFileNotFoundException(locator.path, message="File not found on server")

        return {
            "success": True,
            "imagePath": locator.path,
            "publicUrl": record.public_url,
            "metadata": record_to_response(record)["metadata"],
            "fileName": record.file_name,
            "storageType": record.storage_kind.value,
        }
