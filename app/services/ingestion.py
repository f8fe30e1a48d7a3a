"""
Upload ingestion pipeline.

Validates an incoming file, extracts mesh geometry, writes the bytes to the
selected backend and persists the record. If persisting the record fails the
bytes just written are removed again.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Protocol

from app.config import get_settings
from app.core.exceptions import (
    PayloadTooLargeException,
    UnsupportedFormatException,
    ValidationException,
)
from app.models.asset import AssetRecord, MeshFormat, StorageKind
from app.services.asset_kinds import KindProfile
from app.services.format_extractor import (
    MeshGeometry,
    extract_geometry,
    is_supported,
    to_record_fields,
)
from app.storage.base import StorageBackend, get_mime_type
from app.storage.local import LocalStorageBackend
from app.storage.s3 import S3StorageBackend

logger = logging.getLogger(__name__)

ANONYMOUS_OWNER = "anonymous"
MAX_METADATA_KEY_LENGTH = 64

# Keys of the serialized metadata mapping that clients may not override
RESERVED_METADATA_KEYS = frozenset({
    "size",
    "mimeType",
    "storagePath",
    "bucket",
    "format",
    "verticesCount",
    "facesCount",
    "textureCoordsCount",
    "materials",
    "boundingBox",
    "dimensions",
    "center",
    "length",
})


class RecordSink(Protocol):
    async def create(self, record: AssetRecord) -> AssetRecord: ...


@dataclass
class IncomingFile:
    """An uploaded file held in memory."""

    original_name: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return PurePath(self.original_name).suffix.lower()


def generate_object_key(prefix: str, original_name: str, stem: str = "file") -> tuple[str, str]:
    """
    Generate a collision-resistant storage name.

    Returns:
        Tuple of (file name, full key under ``prefix``)
    """
    extension = PurePath(original_name).suffix.lower()
    file_name = f"{stem}_{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
    return file_name, f"{prefix}{file_name}"


def merge_extra(metadata: dict[str, Any] | None, max_keys: int | None = None) -> dict[str, Any]:
    """Validate the free-form metadata map a client attached to an upload."""
    if not metadata:
        return {}
    if not isinstance(metadata, dict):
        raise ValidationException("metadata must be a JSON object")

    max_keys = max_keys or get_settings().MAX_METADATA_KEYS
    if len(metadata) > max_keys:
        raise ValidationException(
            f"metadata may contain at most {max_keys} keys",
            details={"keys": len(metadata)},
        )

    for key in metadata:
        if len(key) > MAX_METADATA_KEY_LENGTH:
            raise ValidationException(
                f"metadata keys must be at most {MAX_METADATA_KEY_LENGTH} characters",
                details={"key": key[:MAX_METADATA_KEY_LENGTH]},
            )
        if key in RESERVED_METADATA_KEYS:
            raise ValidationException(
                f"metadata key '{key}' is reserved",
                details={"key": key},
            )
    return dict(metadata)


class IngestionPipeline:
    """Stores uploads on either backend and records where they went."""

    def __init__(self, local: LocalStorageBackend, remote: S3StorageBackend):
        self.local = local
        self.remote = remote

    def backend_for(self, kind: StorageKind) -> StorageBackend:
        if kind == StorageKind.LOCAL:
            return self.local
        return self.remote

    def validate(self, profile: KindProfile, incoming: IncomingFile | None) -> None:
        """
        Reject uploads that must not be stored.

        Raises:
            ValidationException: Missing/empty file or disallowed type
            PayloadTooLargeException: File exceeds the kind's size limit
            UnsupportedFormatException: Extension not accepted for this kind
        """
        if incoming is None or not incoming.original_name or incoming.size == 0:
            raise ValidationException("No file uploaded")

        if incoming.size > profile.max_size:
            raise PayloadTooLargeException(profile.max_size)

        if profile.content_type_prefix:
            content_type = incoming.content_type or ""
            if not content_type.startswith(profile.content_type_prefix):
                raise ValidationException(
                    f"Only {profile.content_type_prefix}* files are allowed",
                    details={"content_type": content_type},
                )

        if profile.allowed_extensions and incoming.extension not in profile.allowed_extensions:
            raise UnsupportedFormatException(
                incoming.extension.lstrip(".") or "unknown",
                message=(
                    f"Unsupported file format. Allowed: "
                    f"{', '.join(sorted(profile.allowed_extensions))}"
                ),
            )

    def _kind_fields(self, profile: KindProfile, incoming: IncomingFile) -> dict[str, Any]:
        if not profile.has_geometry:
            return {}

        format_tag = incoming.extension.lstrip(".")
        fields: dict[str, Any] = {"format": MeshFormat(format_tag)}
        if is_supported(format_tag):
            geometry = extract_geometry(incoming.data, format_tag)
            logger.info(
                f"Extracted geometry from {incoming.original_name}: "
                f"{geometry.vertices} vertices, {geometry.faces} faces"
            )
        else:
            geometry = MeshGeometry()
        fields.update(to_record_fields(geometry))
        return fields

    def _mime_type(self, profile: KindProfile, incoming: IncomingFile) -> str:
        if profile.has_geometry or not incoming.content_type:
            return get_mime_type(incoming.extension or "bin")
        return incoming.content_type

    async def _rollback(self, backend: StorageBackend, key: str) -> None:
        try:
            await backend.delete(key)
            logger.info(f"Rolled back {backend.kind.value} bytes at {key}")
        except Exception:
            logger.exception(f"Rollback of {backend.kind.value} bytes at {key} failed")

    async def ingest(
        self,
        store: RecordSink,
        profile: KindProfile,
        incoming: IncomingFile | None,
        storage_kind: StorageKind,
        *,
        description: str | None = None,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        owner_id: str | None = None,
        fields: dict[str, Any] | None = None,
    ) -> AssetRecord:
        """
        Run an upload through validation, extraction, storage and persistence.

        Args:
            store: Record store that persists the finished record
            profile: Kind being uploaded
            incoming: The uploaded file, or None if the request had none
            storage_kind: Backend to write to
            description: Optional free-text description
            tags: Optional tag list
            metadata: Optional client metadata (bounded)
            owner_id: Uploading user, "anonymous" when absent
            fields: Extra kind-specific record columns

        Returns:
            The persisted record
        """
        self.validate(profile, incoming)
        extra = merge_extra(metadata)
        record_fields = self._kind_fields(profile, incoming)
        record_fields.update(fields or {})

        backend = self.backend_for(storage_kind)
        mime_type = self._mime_type(profile, incoming)
        file_name, key = generate_object_key(profile.prefix, incoming.original_name, profile.name_stem)

        await backend.upload_bytes(
            incoming.data,
            key,
            mime_type,
            metadata={"asset-kind": profile.kind.value},
        )

        if storage_kind == StorageKind.REMOTE:
            locator = {
                "bucket": self.remote.bucket_name,
                "storage_key": key,
                "file_path": None,
            }
        else:
            locator = {"bucket": None, "storage_key": None, "file_path": key}

        record = profile.model(
            original_name=incoming.original_name,
            file_name=file_name,
            storage_kind=storage_kind,
            public_url=backend.get_url(key),
            size=incoming.size,
            mime_type=mime_type,
            description=description,
            tags=list(tags or []),
            extra=extra,
            owner_id=owner_id or ANONYMOUS_OWNER,
            **locator,
            **record_fields,
        )

        try:
            record = await store.create(record)
        except Exception:
            logger.error(f"Persisting {profile.label} record for {key} failed, removing bytes")
            await self._rollback(backend, key)
            raise

        logger.info(
            f"Stored {profile.label} {record.id} ({incoming.size} bytes) "
            f"in {storage_kind.value} storage at {key}"
        )
        return record
