"""
Mesh geometry extraction.
Derives vertex/face counts, material libraries and an axis-aligned bounding
box from the raw bytes of a mesh file. Only Wavefront OBJ is parsed.
"""

import math
from typing import Any

from pydantic import BaseModel, Field

from app.core.exceptions import UnsupportedFormatException

SUPPORTED_FORMATS = {"obj"}


class Vector3(BaseModel):
    x: float
    y: float
    z: float


class BoundingBox(BaseModel):
    min: Vector3
    max: Vector3


class Dimensions(BaseModel):
    width: float
    height: float
    depth: float


class MeshGeometry(BaseModel):
    """Geometry summary of a parsed mesh."""

    vertices: int = 0
    faces: int = 0
    textures: int = 0
    materials: list[str] = Field(default_factory=list)
    bounding_box: BoundingBox | None = None
    dimensions: Dimensions | None = None
    center: Vector3 | None = None


def is_supported(format_tag: str | None) -> bool:
    return (format_tag or "").lower().lstrip(".") in SUPPORTED_FORMATS


def _parse_vertex(tokens: list[str]) -> tuple[float, float, float] | None:
    if len(tokens) < 3:
        return None
    try:
        x, y, z = (float(t) for t in tokens[:3])
    except ValueError:
        return None
    if not all(math.isfinite(c) for c in (x, y, z)):
        return None
    return x, y, z


def parse_obj(data: bytes) -> MeshGeometry:
    """
    Parse an OBJ buffer line by line.

    Lines that cannot be understood are skipped. Extra vertex components
    (w, per-vertex colors) are ignored.

    Args:
        data: Raw OBJ file contents

    Returns:
        MeshGeometry with counts and, when any vertex was read, the bounds
    """
    text = data.decode("utf-8", errors="replace")

    vertices = 0
    faces = 0
    textures = 0
    materials: list[str] = []
    lo = [math.inf, math.inf, math.inf]
    hi = [-math.inf, -math.inf, -math.inf]

    # Statements start at column 0 and the keyword ends at the first space
    for line in text.splitlines():
        keyword, separator, rest = line.partition(" ")
        if not separator:
            continue
        tokens = rest.split()

        if keyword == "v":
            vertex = _parse_vertex(tokens)
            if vertex is None:
                continue
            vertices += 1
            for axis, value in enumerate(vertex):
                lo[axis] = min(lo[axis], value)
                hi[axis] = max(hi[axis], value)
        elif keyword == "f":
            if tokens:
                faces += 1
        elif keyword == "vt":
            if tokens:
                textures += 1
        elif keyword == "mtllib":
            materials.extend(tokens)

    geometry = MeshGeometry(
        vertices=vertices,
        faces=faces,
        textures=textures,
        materials=materials,
    )
    if vertices == 0:
        return geometry

    geometry.bounding_box = BoundingBox(
        min=Vector3(x=lo[0], y=lo[1], z=lo[2]),
        max=Vector3(x=hi[0], y=hi[1], z=hi[2]),
    )
    geometry.dimensions = Dimensions(
        width=hi[0] - lo[0],
        height=hi[1] - lo[1],
        depth=hi[2] - lo[2],
    )
    geometry.center = Vector3(
        x=(lo[0] + hi[0]) / 2,
        y=(lo[1] + hi[1]) / 2,
        z=(lo[2] + hi[2]) / 2,
    )
    return geometry


def extract_geometry(data: bytes, format_tag: str) -> MeshGeometry:
    """
    Extract geometry from mesh bytes.

    Raises:
        UnsupportedFormatException: For any format other than OBJ
    """
    normalized = (format_tag or "").lower().lstrip(".")
    if normalized not in SUPPORTED_FORMATS:
        raise UnsupportedFormatException(normalized or format_tag)
    return parse_obj(data)


def to_record_fields(geometry: MeshGeometry) -> dict[str, Any]:
    """Map a MeshGeometry onto mesh record columns."""
    return {
        "vertices_count": geometry.vertices,
        "faces_count": geometry.faces,
        "texture_coords_count": geometry.textures,
        "materials": list(geometry.materials),
        "bounding_box": geometry.bounding_box.model_dump() if geometry.bounding_box else None,
        "dimensions": geometry.dimensions.model_dump() if geometry.dimensions else None,
        "center": geometry.center.model_dump() if geometry.center else None,
    }
