"""
Storage abstraction layer.
Two backends: local filesystem and S3-compatible object storage.
"""

from app.storage.base import FORMAT_MIME_TYPES, ObjectStream, StorageBackend, get_mime_type
from app.storage.local import LocalStorageBackend
from app.storage.s3 import S3StorageBackend
from app.storage.factory import (
    default_storage_kind,
    get_local_storage,
    get_remote_storage,
)

__all__ = [
    "StorageBackend",
    "ObjectStream",
    "LocalStorageBackend",
    "S3StorageBackend",
    "get_local_storage",
    "get_remote_storage",
    "default_storage_kind",
    "get_mime_type",
    "FORMAT_MIME_TYPES",
]
