"""
Pydantic schemas for request/response validation.
"""

from app.schemas.asset import (
    AssetListParams,
    AssetListResponse,
    AssetPage,
    AssetPathResponse,
    AssetRecordResponse,
    IntArrayCreate,
    record_to_response,
)
from app.schemas.auth import Credentials, TokenResponse, UserResponse
from app.schemas.error import ErrorResponse

__all__ = [
    # Asset schemas
    "AssetListParams",
    "AssetListResponse",
    "AssetPage",
    "AssetPathResponse",
    "AssetRecordResponse",
    "IntArrayCreate",
    "record_to_response",
    # Auth schemas
    "Credentials",
    "TokenResponse",
    "UserResponse",
    # Error schemas
    "ErrorResponse",
]
