"""
Local filesystem storage backend.
Stores files under the upload root, served statically by the API.
"""

import logging
from pathlib import Path
from typing import AsyncGenerator

import aiofiles
import aiofiles.os

from app.config import get_settings
from app.core.exceptions import StorageException, StoredFileNotFoundException
from app.models.asset import StorageKind
from app.storage.base import ObjectStream, StorageBackend

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


class LocalStorageBackend(StorageBackend):
    """
    Local filesystem storage implementation.

    Files are stored under the configured LOCAL_STORAGE_PATH directory and
    exposed at LOCAL_PUBLIC_PREFIX.
    """

    kind = StorageKind.LOCAL

    def __init__(
        self,
        base_path: str | None = None,
        public_prefix: str | None = None,
        public_base_url: str | None = None,
    ):
        """
        Initialize local storage backend.

        Args:
            base_path: Upload root. Defaults to settings.LOCAL_STORAGE_PATH
            public_prefix: URL prefix the upload root is served under
            public_base_url: Optional scheme+host prepended to public URLs
        """
        settings = get_settings()
        self.base_path = Path(base_path or settings.LOCAL_STORAGE_PATH)
        self.public_prefix = (public_prefix or settings.LOCAL_PUBLIC_PREFIX).rstrip("/")
        self.public_base_url = (
            public_base_url if public_base_url is not None else settings.PUBLIC_BASE_URL
        )
        self.ensure_root()

    def ensure_root(self) -> Path:
        """Create the upload root if missing. Safe to call repeatedly."""
        self.base_path.mkdir(parents=True, exist_ok=True)
        return self.base_path

    def _get_full_path(self, path: str) -> Path:
        """Get full filesystem path for a storage path, refusing to leave the root."""
        root = self.base_path.resolve()
        full_path = (root / path).resolve()
        if not full_path.is_relative_to(root):
            raise StorageException(
                message="Storage path escapes the upload root",
                details={"path": path},
            )
        return full_path

    async def upload_bytes(
        self,
        data: bytes,
        path: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Write raw bytes under the upload root."""
        self.ensure_root()
        full_path = self._get_full_path(path)

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(full_path, "wb") as f:
                await f.write(data)

            logger.debug(f"Wrote {len(data)} bytes to {full_path}")
            return path

        except OSError as e:
            raise StorageException(
                message=f"Failed to write file: {str(e)}",
                details={"path": path},
            )

    async def open_stream(self, path: str, bucket: str | None = None) -> ObjectStream:
        """Open a local file for streaming after checking it exists."""
        full_path = self._get_full_path(path)

        if not full_path.is_file():
            raise StoredFileNotFoundException(path, message="File not found on server")

        stat = await aiofiles.os.stat(full_path)
        return ObjectStream(chunks=self.download(path), size=stat.st_size)

    async def download(self, path: str) -> AsyncGenerator[bytes, None]:
        """Stream download a file in chunks."""
        full_path = self._get_full_path(path)

        if not full_path.is_file():
            raise StoredFileNotFoundException(path, message="File not found on server")

        try:
            async with aiofiles.open(full_path, "rb") as f:
                while chunk := await f.read(CHUNK_SIZE):
                    yield chunk

        except OSError as e:
            raise StorageException(
                message=f"Failed to read file: {str(e)}",
                details={"path": path},
            )

    async def delete(self, path: str, bucket: str | None = None) -> bool:
        """Delete a file and prune the directories it leaves empty."""
        full_path = self._get_full_path(path)

        if not full_path.exists():
            return False

        try:
            await aiofiles.os.remove(full_path)
        except OSError as e:
            raise StorageException(
                message=f"Failed to delete file: {str(e)}",
                details={"path": path},
            )

        root = self.base_path.resolve()
        parent = full_path.parent
        while parent != root and parent.is_relative_to(root):
            try:
                parent.rmdir()  # Only removes if empty
                parent = parent.parent
            except OSError:
                break

        return True

    async def exists(self, path: str, bucket: str | None = None) -> bool:
        """Check if a file exists."""
        return self._get_full_path(path).is_file()

    def get_url(self, path: str, bucket: str | None = None) -> str:
        """Get the statically served URL for a stored file."""
        url = f"{self.public_prefix}/{path.lstrip('/')}"
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}{url}"
        return url
