"""
Pydantic schemas for asset request/response validation.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_validator

from app.models.asset import AssetRecord, StorageKind


# ===================
# Record Serialization
# ===================

def _record_metadata(record: AssetRecord) -> dict[str, Any]:
    """Open metadata mapping: client extras first, core keys on top."""
    metadata: dict[str, Any] = dict(record.extra or {})
    metadata.update({
        "size": record.size,
        "mimeType": record.mime_type,
        "storagePath": record.storage_path,
    })
    if record.storage_kind == StorageKind.REMOTE:
        metadata["bucket"] = record.bucket

    if hasattr(record, "vertices_count"):
        metadata.update({
            "format": record.format.value if record.format else None,
            "verticesCount": record.vertices_count,
            "facesCount": record.faces_count,
            "textureCoordsCount": record.texture_coords_count,
            "materials": record.materials or [],
            "boundingBox": record.bounding_box,
            "dimensions": record.dimensions,
            "center": record.center,
        })
    elif hasattr(record, "length"):
        metadata.update({
            "length": record.length,
            "dimensions": record.dimensions,
        })
    return metadata


def record_to_response(record: AssetRecord) -> dict[str, Any]:
    """Convert an asset record model to its API representation."""
    return {
        "id": record.id,
        "originalName": record.original_name,
        "fileName": record.file_name,
        "storageType": record.storage_kind.value,
        "publicUrl": record.public_url,
        "description": record.description,
        "tags": record.tags or [],
        "ownerId": record.owner_id,
        "metadata": _record_metadata(record),
        "createdAt": record.created_at.isoformat() if record.created_at else None,
        "updatedAt": record.updated_at.isoformat() if record.updated_at else None,
    }


# ===================
# Request Schemas
# ===================

def _check_dimensions(value: Any) -> list[int]:
    if (
        not isinstance(value, list)
        or len(value) != 2
        or any(type(d) is not int or d < 1 for d in value)
    ):
        raise ValueError("dimensions must be two positive integers")
    return value


class IntArrayCreate(BaseModel):
    """JSON body for POST /int-arrays."""

    data: list[StrictInt] = Field(
        ...,
        min_length=1,
        description="Integer values of the dataset",
    )
    dimensions: list[StrictInt] | None = Field(
        default=None,
        description="[rows, cols]; defaults to [len(data), 1]",
    )
    description: str | None = Field(default=None, max_length=1000)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    user_id: str | None = Field(default=None, alias="userId")
    storage_type: str | None = Field(default=None, alias="storageType")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("dimensions")
    @classmethod
    def validate_dimensions(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        return _check_dimensions(v)

    @model_validator(mode="after")
    def dimensions_from_metadata(self) -> "IntArrayCreate":
        """Take dimensions from metadata when they are not given at the top level."""
        if self.metadata and "dimensions" in self.metadata:
            nested = _check_dimensions(self.metadata.pop("dimensions"))
            if self.dimensions is None:
                self.dimensions = nested
        return self

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return [t.strip() for t in v if t.strip()]


# ===================
# Query Parameters
# ===================

class AssetListParams(BaseModel):
    """Query parameters for asset listings (GET /{kind})."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    limit: int = Field(default=10, ge=1, le=100, description="Page size (max 100)")
    search: str | None = Field(
        default=None,
        description="Case-insensitive match on names and description",
    )
    format: str | None = Field(default=None, description="Mesh format filter")
    tag: str | None = Field(default=None, description="Tag filter")


# ===================
# Response Schemas
# ===================

class AssetPage(BaseModel):
    items: list[dict[str, Any]]
    total: int
    pages: int
    page: int
    limit: int


class AssetListResponse(BaseModel):
    """Paginated listing envelope."""

    success: bool = True
    data: AssetPage


class AssetRecordResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class AssetPathResponse(BaseModel):
    """Locator of an asset without its bytes."""

    success: bool = True
    image_path: str = Field(alias="imagePath")
    public_url: str = Field(alias="publicUrl")
    metadata: dict[str, Any]
    file_name: str = Field(alias="fileName")
    storage_type: str = Field(alias="storageType")

    model_config = ConfigDict(populate_by_name=True)
