"""
Pydantic schemas for error responses.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Examples:
        400: {"success": false, "error": "No file uploaded", "code": "validation_failed"}
        404: {"success": false, "error": "Image not found", "code": "not_found"}
        404: {"success": false, "error": "File not found on server", "code": "file_not_found"}
        413: {"success": false, "error": "Maximum upload size exceeded (100MB limit)", "code": "payload_too_large"}
    """

    success: bool = False
    error: str = Field(
        ...,
        description="Human-readable error message",
    )
    code: str = Field(
        ...,
        description="Error code string",
        examples=["validation_failed", "not_found", "file_not_found", "storage_error"],
    )
    details: dict[str, Any] | list[Any] | None = Field(
        default=None,
        description="Additional details, development mode only",
    )
