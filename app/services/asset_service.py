"""
Asset service - Business logic for one asset kind.
Handles upload, listing, retrieval and delete with best-effort byte cleanup.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationException
from app.models.asset import AssetRecord, StorageKind
from app.schemas.asset import AssetListParams, IntArrayCreate, record_to_response
from app.services.asset_kinds import KindProfile
from app.services.ingestion import ANONYMOUS_OWNER, IncomingFile, IngestionPipeline
from app.services.record_store import AssetRecordStore, page_count
from app.services.retrieval import RetrievalDispatcher
from app.storage.base import ObjectStream
from app.storage.factory import default_storage_kind

logger = logging.getLogger(__name__)


def parse_storage_kind(value: str | None) -> StorageKind:
    """Parse a client-supplied storageType, falling back to the configured default."""
    try:
        return StorageKind.parse(value, default_storage_kind())
    except ValueError:
        raise ValidationException(
            f"Invalid storage type: {value}",
            details={"allowed": ["local", "remote", "s3"]},
        )


class AssetService:
    """Service class for operations on a single asset kind."""

    def __init__(
        self,
        db: AsyncSession,
        profile: KindProfile,
        pipeline: IngestionPipeline,
        dispatcher: RetrievalDispatcher,
    ):
        self.profile = profile
        self.store = AssetRecordStore(db, profile)
        self.pipeline = pipeline
        self.dispatcher = dispatcher

    async def upload(
        self,
        incoming: IncomingFile | None,
        storage_type: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        owner_id: str | None = None,
    ) -> AssetRecord:
        """
        Store an uploaded file and create its record.

        Args:
            incoming: Uploaded file, None if the request carried none
            storage_type: "local", "remote" or "s3"; default from settings
            description: Optional description
            tags: Optional tag list
            metadata: Optional client metadata
            owner_id: Uploading user

        Returns:
            Created record
        """
        return await self.pipeline.ingest(
            self.store,
            self.profile,
            incoming,
            parse_storage_kind(storage_type),
            description=description,
            tags=tags,
            metadata=metadata,
            owner_id=owner_id,
        )

    async def create_int_array(self, body: IntArrayCreate, owner_id: str | None = None) -> AssetRecord:
        """Store an integer array as a JSON document and create its record."""
        dimensions = body.dimensions or [len(body.data), 1]
        document = {
            "data": body.data,
            "metadata": {
                **(body.metadata or {}),
                "dimensions": dimensions,
                "size": len(body.data),
                "userId": owner_id or ANONYMOUS_OWNER,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            },
        }

        return await self.pipeline.ingest(
            self.store,
            self.profile,
            IncomingFile(
                original_name="int-array.json",
                content_type="application/json",
                data=json.dumps(document).encode("utf-8"),
            ),
            parse_storage_kind(body.storage_type),
            description=body.description,
            tags=body.tags,
            metadata=body.metadata,
            owner_id=owner_id,
            fields={"length": len(body.data), "dimensions": dimensions},
        )

    async def list_records(self, params: AssetListParams) -> dict[str, Any]:
        records, total = await self.store.list_records(params)
        return {
            "items": [record_to_response(record) for record in records],
            "total": total,
            "pages": page_count(total, params.limit),
            "page": params.page,
            "limit": params.limit,
        }

    async def get(self, record_id: str) -> AssetRecord:
        return await self.store.get(record_id)

    async def open(self, record_id: str) -> tuple[AssetRecord, ObjectStream]:
        """Load a record and open its bytes for streaming."""
        record = await self.store.get(record_id)
        return record, await self.dispatcher.open(record)

    async def describe(self, record_id: str) -> dict[str, Any]:
        record = await self.store.get(record_id)
        return await self.dispatcher.describe(record)

    async def delete(self, record_id: str) -> None:
        """
        Delete a record and, best effort, its bytes.

        Byte cleanup failures are logged; the record is removed regardless.
        """
        record = await self.store.get(record_id)

        try:
            locator = self.dispatcher.resolve(record)
            backend = self.dispatcher.backend_for(locator)
            removed = await backend.delete(locator.path, bucket=locator.bucket)
            if not removed:
                logger.warning(f"Bytes for {self.profile.label} {record.id} were already gone")
        except Exception:
            logger.warning(
                f"Could not remove bytes for {self.profile.label} {record.id}, deleting record anyway",
                exc_info=True,
            )

        await self.store.delete(record)
        logger.info(f"Deleted {self.profile.label} {record.id}")
