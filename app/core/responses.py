"""
Response utilities for the asset store API.
Provides the {"success": ..., ...} envelope shared by every endpoint.
"""

from typing import Any

from fastapi.responses import JSONResponse


def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Any = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error: Error code string
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional error details

    Returns:
        JSONResponse with error payload
    """
    content: dict[str, Any] = {
        "success": False,
        "error": message,
        "code": error,
    }
    if details:
        content["details"] = details

    return JSONResponse(status_code=status_code, content=content)


def success_payload(data: Any = None, **extra: Any) -> dict[str, Any]:
    """Wrap data in the success envelope."""
    payload: dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return payload
