"""
Custom exceptions for the asset store API.
Every API error is rendered as {"success": false, "error": ..., "code": ...}.
"""

from typing import Any


class AssetAPIException(Exception):
    """Base exception for all asset store API errors."""

    # Backend failures carry SDK/filesystem messages that are hidden outside development
    redact: bool = False

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        """
        Convert exception to response dictionary.

        Args:
            include_details: Whether to expose details and unredacted messages

        Returns:
            Error response payload
        """
        message = self.message
        if self.redact and not include_details:
            message = "An error occurred while accessing storage"

        response: dict[str, Any] = {
            "success": False,
            "error": message,
            "code": self.error,
        }
        if include_details and self.details:
            response["details"] = self.details
        return response


class ValidationException(AssetAPIException):
    """400 - Missing file, malformed id, invalid fields."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="validation_failed",
            message=message,
            status_code=400,
            details=details,
        )


class UnsupportedFormatException(AssetAPIException):
    """400 - File format cannot be handled."""

    def __init__(self, format_tag: str, message: str | None = None):
        super().__init__(
            error="unsupported_format",
            message=message or f"Unsupported format: {format_tag}",
            status_code=400,
            details={"format": format_tag},
        )


class UnauthorizedException(AssetAPIException):
    """401 - Missing, invalid, expired or revoked token."""

    def __init__(self, message: str = "Valid token required"):
        super().__init__(
            error="unauthorized",
            message=message,
            status_code=401,
        )


class RecordNotFoundException(AssetAPIException):
    """404 - No record with this id."""

    def __init__(self, label: str, record_id: str):
        super().__init__(
            error="not_found",
            message=f"{label} not found",
            status_code=404,
            details={"id": record_id},
        )


class StoredFileNotFoundException(AssetAPIException):
    """404 - Record exists but its bytes are gone."""

    def __init__(self, path: str, message: str = "File not found in storage"):
        super().__init__(
            error="file_not_found",
            message=message,
            status_code=404,
            details={"path": path},
        )


class NotRetrievableException(AssetAPIException):
    """404 - Record has no usable locator."""

    def __init__(self, record_id: str, reason: str):
        super().__init__(
            error="not_retrievable",
            message="Asset is not available in storage",
            status_code=404,
            details={"id": record_id, "reason": reason},
        )


class ConflictException(AssetAPIException):
    """409 - Unique value already taken."""

    def __init__(self, message: str):
        super().__init__(
            error="conflict",
            message=message,
            status_code=409,
        )


class PayloadTooLargeException(AssetAPIException):
    """413 - Upload size exceeds limit."""

    def __init__(self, max_size: int):
        max_size_mb = max_size / (1024 * 1024)
        super().__init__(
            error="payload_too_large",
            message=f"Maximum upload size exceeded ({max_size_mb:.0f}MB limit)",
            status_code=413,
            details={"max_size": max_size},
        )


class StorageException(AssetAPIException):
    """500 - Storage backend error."""

    redact = True

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="storage_error",
            message=message,
            status_code=500,
            details=details,
        )
