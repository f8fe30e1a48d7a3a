"""
SQLAlchemy ORM models for the asset store.
"""

from app.models.asset import (
    AssetKind,
    AssetRecord,
    ImageAsset,
    IntArrayAsset,
    MeshFormat,
    Model3DAsset,
    ObjFileAsset,
    StorageKind,
)
from app.models.user import BlacklistedToken, User

__all__ = [
    "AssetKind",
    "AssetRecord",
    "BlacklistedToken",
    "ImageAsset",
    "IntArrayAsset",
    "MeshFormat",
    "Model3DAsset",
    "ObjFileAsset",
    "StorageKind",
    "User",
]
