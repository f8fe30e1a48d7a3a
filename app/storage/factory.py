"""
Storage backend factory.
One cached instance per storage kind, both available at all times.
"""

from functools import lru_cache

from app.config import get_settings
from app.models.asset import StorageKind
from app.storage.local import LocalStorageBackend
from app.storage.s3 import S3StorageBackend


@lru_cache
def get_local_storage() -> LocalStorageBackend:
    """Get the local filesystem backend."""
    return LocalStorageBackend()


@lru_cache
def get_remote_storage() -> S3StorageBackend:
    """Get the S3 backend."""
    return S3StorageBackend()


def default_storage_kind() -> StorageKind:
    """Storage kind used when an upload does not name one."""
    return StorageKind(get_settings().DEFAULT_STORAGE_KIND)
