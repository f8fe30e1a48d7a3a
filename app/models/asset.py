"""
Asset record SQLAlchemy models.
One table per asset kind, all sharing the same storage core.
"""

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Enum,
    Integer,
    JSON,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageKind(str, enum.Enum):
    """Backend holding an asset's bytes."""
    LOCAL = "local"
    REMOTE = "remote"

    @classmethod
    def parse(cls, value: "str | StorageKind | None", default: "StorageKind") -> "StorageKind":
        """Parse a client-supplied storage type; "s3" is accepted for remote."""
        if value is None or value == "":
            return default
        if isinstance(value, StorageKind):
            return value
        normalized = value.strip().lower()
        if normalized == "s3":
            return cls.REMOTE
        return cls(normalized)


class AssetKind(str, enum.Enum):
    """Asset kinds, each stored in its own table."""
    IMAGE = "image"
    MODEL_3D = "3d-model"
    OBJ_FILE = "obj-file"
    INT_ARRAY = "int-array"


class MeshFormat(str, enum.Enum):
    """3D model formats accepted for upload."""
    OBJ = "obj"
    FBX = "fbx"
    GLB = "glb"
    GLTF = "gltf"
    STL = "stl"
    DAE = "dae"
    THREE_DS = "3ds"
    BLEND = "blend"


class AssetRecordMixin:
    """
    Storage core shared by every asset kind.

    Exactly one locator is populated: ``file_path`` for local storage,
    ``bucket`` + ``storage_key`` for remote storage.
    """

    # ===================
    # Identity & Names
    # ===================
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        comment="Globally unique identifier",
    )
    original_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Client-supplied file name",
    )
    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Generated storage file name",
    )

    # ===================
    # Locator
    # ===================
    storage_kind: Mapped[StorageKind] = mapped_column(
        Enum(StorageKind),
        nullable=False,
        index=True,
        comment="Backend holding the bytes, fixed at creation",
    )
    file_path: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Path relative to the local upload root",
    )
    bucket: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Object storage bucket",
    )
    storage_key: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Object storage key",
    )
    public_url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Externally resolvable address of the bytes",
    )

    # ===================
    # Content
    # ===================
    size: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="File size in bytes",
    )
    mime_type: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="application/octet-stream",
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    tags: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
    extra: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Bounded free-form client metadata",
    )

    # ===================
    # Provenance
    # ===================
    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="anonymous",
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    @declared_attr.directive
    def __table_args__(cls):
        # Enum columns persist member names
        return (
            CheckConstraint(
                "(storage_kind = 'LOCAL' AND storage_key IS NULL AND bucket IS NULL) "
                "OR (storage_kind = 'REMOTE' AND file_path IS NULL)",
                name=f"ck_{cls.__tablename__}_single_locator",
            ),
        )

    @property
    def storage_path(self) -> str | None:
        """Key for remote records, relative path for local ones."""
        if self.storage_kind == StorageKind.REMOTE:
            return self.storage_key
        return self.file_path


class MeshGeometryMixin:
    """Geometry fields derived from mesh files."""

    vertices_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    faces_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    texture_coords_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    materials: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    bounding_box: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
        comment='{"min": {"x", "y", "z"}, "max": {"x", "y", "z"}}',
    )
    dimensions: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
        comment='{"width", "height", "depth"}',
    )
    center: Mapped[dict | None] = mapped_column(JSON, nullable=True)


class ImageAsset(AssetRecordMixin, Base):
    """Uploaded image."""
    __tablename__ = "images"

    def __repr__(self) -> str:
        return f"<ImageAsset(id={self.id}, file_name={self.file_name})>"


class Model3DAsset(AssetRecordMixin, MeshGeometryMixin, Base):
    """3D model file in any supported mesh format."""
    __tablename__ = "models_3d"

    format: Mapped[MeshFormat] = mapped_column(
        Enum(MeshFormat),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Model3DAsset(id={self.id}, format={self.format})>"


class ObjFileAsset(AssetRecordMixin, MeshGeometryMixin, Base):
    """Wavefront OBJ file."""
    __tablename__ = "obj_files"

    format: Mapped[MeshFormat] = mapped_column(
        Enum(MeshFormat),
        nullable=False,
        default=MeshFormat.OBJ,
    )

    def __repr__(self) -> str:
        return f"<ObjFileAsset(id={self.id}, vertices={self.vertices_count})>"


class IntArrayAsset(AssetRecordMixin, Base):
    """Integer-array dataset stored as a JSON document."""
    __tablename__ = "int_arrays"

    length: Mapped[int] = mapped_column(Integer, nullable=False)
    dimensions: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        comment="[rows, cols]",
    )

    def __repr__(self) -> str:
        return f"<IntArrayAsset(id={self.id}, length={self.length})>"


AssetRecord = ImageAsset | Model3DAsset | ObjFileAsset | IntArrayAsset
