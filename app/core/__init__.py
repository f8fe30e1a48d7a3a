"""Core utilities and exceptions for the asset store API."""

from app.core.exceptions import (
    AssetAPIException,
    ConflictException,
    NotRetrievableException,
    PayloadTooLargeException,
    RecordNotFoundException,
    StorageException,
    StoredFileNotFoundException,
    UnauthorizedException,
    UnsupportedFormatException,
    ValidationException,
)

__all__ = [
    "AssetAPIException",
    "ConflictException",
    "NotRetrievableException",
    "PayloadTooLargeException",
    "RecordNotFoundException",
    "StorageException",
    "StoredFileNotFoundException",
    "UnauthorizedException",
    "UnsupportedFormatException",
    "ValidationException",
]
