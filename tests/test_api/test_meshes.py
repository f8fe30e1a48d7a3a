"""
Tests for 3D model and OBJ file endpoints.
"""

import io

import pytest
from httpx import AsyncClient

MODELS = "/api/v1/3d-models"
OBJ_FILES = "/api/v1/obj-files"


async def upload_mesh(client: AsyncClient, base: str, name: str, content: bytes, **fields):
    files = {"file": (name, io.BytesIO(content), "application/octet-stream")}
    data = {"storageType": "local", **fields}
    return await client.post(base, data=data, files=files)


@pytest.mark.asyncio
@pytest.mark.parametrize("base", [OBJ_FILES, MODELS])
async def test_obj_triangle_geometry(client: AsyncClient, obj_triangle: bytes, base: str):
    """Test that a local OBJ upload records its geometry."""
    response = await upload_mesh(client, base, "triangle.obj", obj_triangle)

    assert response.status_code == 201
    metadata = response.json()["data"]["metadata"]
    assert metadata["verticesCount"] == 3
    assert metadata["facesCount"] == 1
    assert metadata["boundingBox"]["min"] == {"x": 0, "y": 0, "z": 0}
    assert metadata["boundingBox"]["max"] == {"x": 1, "y": 1, "z": 0}
    assert metadata["dimensions"] == {"width": 1, "height": 1, "depth": 0}
    assert metadata["center"] == {"x": 0.5, "y": 0.5, "z": 0}
    assert metadata["format"] == "obj"


@pytest.mark.asyncio
async def test_obj_stream_round_trip(client: AsyncClient, obj_triangle: bytes):
    created = (await upload_mesh(client, OBJ_FILES, "triangle.obj", obj_triangle)).json()["data"]

    response = await client.get(f"{OBJ_FILES}/{created['id']}")

    assert response.status_code == 200
    assert response.content == obj_triangle
    assert response.headers["content-type"].startswith("model/obj")


@pytest.mark.asyncio
async def test_obj_kind_rejects_other_formats(client: AsyncClient):
    response = await upload_mesh(client, OBJ_FILES, "robot.glb", b"glTF")

    assert response.status_code == 400
    assert response.json()["code"] == "unsupported_format"


@pytest.mark.asyncio
async def test_model_without_parser_has_zero_counts(client: AsyncClient):
    response = await upload_mesh(client, MODELS, "robot.glb", b"glTF binary content")

    assert response.status_code == 201
    metadata = response.json()["data"]["metadata"]
    assert metadata["format"] == "glb"
    assert metadata["verticesCount"] == 0
    assert metadata["facesCount"] == 0
    assert metadata["boundingBox"] is None
    assert metadata["mimeType"] == "model/gltf-binary"


@pytest.mark.asyncio
async def test_model_rejects_unknown_extension(client: AsyncClient):
    response = await upload_mesh(client, MODELS, "scene.usdz", b"usdz")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_remote_obj_upload(client: AsyncClient, obj_triangle: bytes, s3_client):
    response = await upload_mesh(client, OBJ_FILES, "triangle.obj", obj_triangle, storageType="remote")

    assert response.status_code == 201
    record = response.json()["data"]
    assert record["metadata"]["storagePath"].startswith("obj-files/file_")
    assert record["metadata"]["verticesCount"] == 3

    streamed = await client.get(f"{OBJ_FILES}/{record['id']}")
    assert streamed.content == obj_triangle


@pytest.mark.asyncio
async def test_filter_by_format(client: AsyncClient, obj_triangle: bytes):
    await upload_mesh(client, MODELS, "a.obj", obj_triangle)
    await upload_mesh(client, MODELS, "b.stl", b"solid x")
    await upload_mesh(client, MODELS, "c.stl", b"solid y")

    response = await client.get(MODELS, params={"format": "stl"})

    data = response.json()["data"]
    assert data["total"] == 2
    assert {item["metadata"]["format"] for item in data["items"]} == {"stl"}


@pytest.mark.asyncio
async def test_filter_by_unknown_format(client: AsyncClient):
    response = await client.get(MODELS, params={"format": "usdz"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_search_and_tag_filter(client: AsyncClient, obj_triangle: bytes):
    await upload_mesh(client, OBJ_FILES, "teapot.obj", obj_triangle, tags="kitchen,classic")
    await upload_mesh(client, OBJ_FILES, "bunny.obj", obj_triangle, description="Stanford Bunny", tags="classic")

    by_name = (await client.get(OBJ_FILES, params={"search": "TEAPOT"})).json()["data"]
    by_description = (await client.get(OBJ_FILES, params={"search": "stanford"})).json()["data"]
    by_tag = (await client.get(OBJ_FILES, params={"tag": "classic"})).json()["data"]
    by_other_tag = (await client.get(OBJ_FILES, params={"tag": "kitchen"})).json()["data"]

    assert [item["originalName"] for item in by_name["items"]] == ["teapot.obj"]
    assert [item["originalName"] for item in by_description["items"]] == ["bunny.obj"]
    assert by_tag["total"] == 2
    assert by_other_tag["total"] == 1


@pytest.mark.asyncio
async def test_pagination(client: AsyncClient, obj_triangle: bytes):
    """Test page 2 of 15 records with limit 10."""
    for i in range(15):
        response = await upload_mesh(client, OBJ_FILES, f"mesh{i}.obj", obj_triangle)
        assert response.status_code == 201

    response = await client.get(OBJ_FILES, params={"page": 2, "limit": 10})

    data = response.json()["data"]
    assert len(data["items"]) == 5
    assert data["total"] == 15
    assert data["pages"] == 2
    assert data["page"] == 2
    assert data["limit"] == 10


@pytest.mark.asyncio
async def test_limit_above_maximum(client: AsyncClient):
    response = await client.get(OBJ_FILES, params={"limit": 1000})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_failed"


@pytest.mark.asyncio
async def test_delete_mesh(client: AsyncClient, obj_triangle: bytes, local_storage):
    created = (await upload_mesh(client, MODELS, "a.obj", obj_triangle)).json()["data"]

    response = await client.delete(f"{MODELS}/{created['id']}")

    assert response.status_code == 200
    assert not (local_storage.base_path / created["metadata"]["storagePath"]).exists()
    assert (await client.get(f"{MODELS}/{created['id']}")).status_code == 404
