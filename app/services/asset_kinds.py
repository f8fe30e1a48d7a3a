"""
Per-kind upload profiles.
Each asset kind has its own table, key prefix, upload field and limits.
"""

from dataclasses import dataclass, field

from app.config import get_settings
from app.models.asset import (
    AssetKind,
    ImageAsset,
    IntArrayAsset,
    MeshFormat,
    Model3DAsset,
    ObjFileAsset,
)


@dataclass(frozen=True)
class KindProfile:
    """How one asset kind is validated, stored and addressed."""

    kind: AssetKind
    label: str
    model: type
    prefix: str
    route: str
    upload_field: str = "file"
    name_stem: str = "file"
    allowed_extensions: frozenset[str] = field(default_factory=frozenset)
    content_type_prefix: str | None = None
    has_geometry: bool = False
    image_limit: bool = False

    @property
    def max_size(self) -> int:
        settings = get_settings()
        if self.image_limit:
            return settings.MAX_IMAGE_UPLOAD_SIZE
        return settings.MAX_UPLOAD_SIZE


MESH_EXTENSIONS = frozenset(f".{fmt.value}" for fmt in MeshFormat)

KIND_PROFILES: dict[AssetKind, KindProfile] = {
    AssetKind.IMAGE: KindProfile(
        kind=AssetKind.IMAGE,
        label="Image",
        model=ImageAsset,
        prefix="images/",
        route="/images",
        upload_field="photo",
        content_type_prefix="image/",
        image_limit=True,
    ),
    AssetKind.MODEL_3D: KindProfile(
        kind=AssetKind.MODEL_3D,
        label="3D model",
        model=Model3DAsset,
        prefix="3d-models/",
        route="/3d-models",
        allowed_extensions=MESH_EXTENSIONS,
        has_geometry=True,
    ),
    AssetKind.OBJ_FILE: KindProfile(
        kind=AssetKind.OBJ_FILE,
        label="OBJ file",
        model=ObjFileAsset,
        prefix="obj-files/",
        route="/obj-files",
        allowed_extensions=frozenset({".obj"}),
        has_geometry=True,
    ),
    AssetKind.INT_ARRAY: KindProfile(
        kind=AssetKind.INT_ARRAY,
        label="Integer array",
        model=IntArrayAsset,
        prefix="int-arrays/",
        route="/int-arrays",
        name_stem="array",
        allowed_extensions=frozenset({".json"}),
    ),
}


def get_profile(kind: AssetKind) -> KindProfile:
    return KIND_PROFILES[kind]
