"""
Abstract storage backend interface.
Defines the contract for all storage implementations.
"""

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator

from app.models.asset import StorageKind


@dataclass
class ObjectStream:
    """An opened stored object, ready to be streamed to a client."""

    chunks: AsyncIterator[bytes]
    content_type: str | None = None
    size: int | None = None


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Local and S3 implementations share these methods so the ingestion
    pipeline and retrieval dispatcher never branch on backend internals.
    """

    kind: StorageKind

    @abstractmethod
    async def upload_bytes(
        self,
        data: bytes,
        path: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """
        Upload raw bytes to storage.

        Args:
            data: Raw file bytes
            path: Destination path or key in storage
            content_type: MIME type of the content
            metadata: Optional object metadata (ignored by local storage)

        Returns:
            The storage path where the file was saved

        Raises:
            StorageException: If upload fails
        """
        pass

    @abstractmethod
    async def open_stream(self, path: str, bucket: str | None = None) -> ObjectStream:
        """
        Open a stored object for streaming.

        The object is located eagerly so that a missing or unreadable object
        fails before any bytes are sent.

        Raises:
            StoredFileNotFoundException: If the object does not exist
            StorageException: If the backend fails
        """
        pass

    @abstractmethod
    async def delete(self, path: str, bucket: str | None = None) -> bool:
        """
        Delete a file from storage.

        Returns:
            True if deleted successfully, False if file didn't exist

        Raises:
            StorageException: If deletion fails for other reasons
        """
        pass

    @abstractmethod
    async def exists(self, path: str, bucket: str | None = None) -> bool:
        """Check if a file exists in storage."""
        pass

    @abstractmethod
    def get_url(self, path: str, bucket: str | None = None) -> str:
        """
        Get the public URL for a stored file.

        For local storage this is the statically served path,
        for object storage the object's direct URL.
        """
        pass


# MIME type mapping for formats the mimetypes module does not know
FORMAT_MIME_TYPES = {
    "gltf": "model/gltf+json",
    "glb": "model/gltf-binary",
    "blend": "application/x-blender",
    "fbx": "application/octet-stream",
    "obj": "model/obj",
    "stl": "model/stl",
    "dae": "model/vnd.collada+xml",
    "3ds": "application/x-3ds",
    "json": "application/json",
}


def get_mime_type(format: str) -> str:
    """Get MIME type for a file format or extension."""
    format = format.lower().lstrip(".")
    if format in FORMAT_MIME_TYPES:
        return FORMAT_MIME_TYPES[format]
    guessed, _ = mimetypes.guess_type(f"file.{format}")
    return guessed or "application/octet-stream"
