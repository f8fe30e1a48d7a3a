"""
Tests for image endpoints.
"""

import io
import json

import pytest
from httpx import AsyncClient

from app.config import get_settings

IMAGES = "/api/v1/images"


async def upload_image(client: AsyncClient, content: bytes, storage_type: str = "local", **fields):
    files = {"photo": ("cat.png", io.BytesIO(content), "image/png")}
    data = {"storageType": storage_type, **fields}
    return await client.post(IMAGES, data=data, files=files)


@pytest.mark.asyncio
async def test_list_images_empty(client: AsyncClient):
    """Test listing images when database is empty."""
    response = await client.get(IMAGES)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"items": [], "total": 0, "pages": 1, "page": 1, "limit": 10}


@pytest.mark.asyncio
async def test_upload_local_image(client: AsyncClient, png_bytes: bytes, local_storage):
    """Test uploading an image to local storage."""
    response = await upload_image(
        client,
        png_bytes,
        description="A cat",
        tags="pets,cats",
        metadata=json.dumps({"camera": "x100"}),
        userId="user-42",
    )

    assert response.status_code == 201
    record = response.json()["data"]
    assert record["storageType"] == "local"
    assert record["originalName"] == "cat.png"
    assert record["ownerId"] == "user-42"
    assert record["tags"] == ["pets", "cats"]
    assert record["metadata"]["size"] == len(png_bytes)
    assert record["metadata"]["mimeType"] == "image/png"
    assert record["metadata"]["camera"] == "x100"
    assert record["metadata"]["storagePath"].startswith("images/file_")
    assert record["publicUrl"] == f"/uploads/{record['metadata']['storagePath']}"
    assert (local_storage.base_path / record["metadata"]["storagePath"]).read_bytes() == png_bytes


@pytest.mark.asyncio
async def test_upload_remote_image_with_s3_alias(client: AsyncClient, png_bytes: bytes, s3_client):
    """Test that storageType=s3 stores the image in the bucket."""
    response = await upload_image(client, png_bytes, storage_type="s3")

    assert response.status_code == 201
    record = response.json()["data"]
    assert record["storageType"] == "remote"
    assert record["metadata"]["bucket"] == "test-bucket"
    key = record["metadata"]["storagePath"]
    assert record["publicUrl"] == f"https://test-bucket.s3.us-east-1.amazonaws.com/{key}"
    assert s3_client.objects[("test-bucket", key)]["Body"] == png_bytes


@pytest.mark.asyncio
async def test_upload_defaults_to_remote(client: AsyncClient, png_bytes: bytes, s3_client):
    files = {"photo": ("cat.png", io.BytesIO(png_bytes), "image/png")}

    response = await client.post(IMAGES, files=files)

    assert response.status_code == 201
    assert response.json()["data"]["storageType"] == "remote"
    assert response.json()["data"]["ownerId"] == "anonymous"


@pytest.mark.asyncio
async def test_upload_without_file(client: AsyncClient):
    """Test that a missing file is rejected and nothing is stored."""
    response = await client.post(IMAGES, data={"storageType": "local"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "No file uploaded" in body["error"]

    listing = await client.get(IMAGES)
    assert listing.json()["data"]["total"] == 0


@pytest.mark.asyncio
async def test_upload_non_image(client: AsyncClient):
    files = {"photo": ("notes.txt", io.BytesIO(b"hello"), "text/plain")}

    response = await client.post(IMAGES, data={"storageType": "local"}, files=files)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_failed"


@pytest.mark.asyncio
async def test_upload_invalid_storage_type(client: AsyncClient, png_bytes: bytes):
    response = await upload_image(client, png_bytes, storage_type="tape")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_upload_invalid_metadata(client: AsyncClient, png_bytes: bytes):
    response = await upload_image(client, png_bytes, metadata="[1, 2]")

    assert response.status_code == 400
    assert "metadata" in response.json()["error"]


@pytest.mark.asyncio
async def test_upload_too_large(client: AsyncClient, png_bytes: bytes, monkeypatch):
    monkeypatch.setattr(get_settings(), "MAX_IMAGE_UPLOAD_SIZE", 8)

    response = await upload_image(client, png_bytes)

    assert response.status_code == 413
    assert response.json()["code"] == "payload_too_large"


@pytest.mark.asyncio
@pytest.mark.parametrize("storage_type", ["local", "remote"])
async def test_stream_returns_identical_bytes(client: AsyncClient, png_bytes: bytes, storage_type: str):
    """Test that every upload streams back byte-identical content."""
    created = (await upload_image(client, png_bytes, storage_type=storage_type)).json()["data"]

    response = await client.get(f"{IMAGES}/{created['id']}")

    assert response.status_code == 200
    assert response.content == png_bytes
    assert response.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_get_record(client: AsyncClient, png_bytes: bytes):
    created = (await upload_image(client, png_bytes)).json()["data"]

    response = await client.get(f"{IMAGES}/{created['id']}/record")

    assert response.status_code == 200
    assert response.json()["data"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_get_path_local(client: AsyncClient, png_bytes: bytes):
    created = (await upload_image(client, png_bytes)).json()["data"]

    response = await client.get(f"{IMAGES}/{created['id']}/path")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["imagePath"] == created["metadata"]["storagePath"]
    assert body["publicUrl"] == created["publicUrl"]
    assert body["fileName"] == created["fileName"]
    assert body["storageType"] == "local"
    assert body["metadata"]["size"] == len(png_bytes)


@pytest.mark.asyncio
async def test_get_path_remote(client: AsyncClient, png_bytes: bytes):
    created = (await upload_image(client, png_bytes, storage_type="remote")).json()["data"]

    response = await client.get(f"{IMAGES}/{created['id']}/path")

    assert response.status_code == 200
    assert response.json()["imagePath"] == created["metadata"]["storagePath"]


@pytest.mark.asyncio
async def test_get_unknown_id(client: AsyncClient):
    response = await client.get(f"{IMAGES}/5b0e6c1e-4a8b-4b7e-9f43-0d9b8a7c6e5f")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_get_malformed_id(client: AsyncClient):
    response = await client.get(f"{IMAGES}/not-a-uuid")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_local_bytes_missing(client: AsyncClient, png_bytes: bytes, local_storage):
    """Test that a record whose file vanished reports file_not_found."""
    created = (await upload_image(client, png_bytes)).json()["data"]
    (local_storage.base_path / created["metadata"]["storagePath"]).unlink()

    response = await client.get(f"{IMAGES}/{created['id']}")
    path_response = await client.get(f"{IMAGES}/{created['id']}/path")

    assert response.status_code == 404
    assert response.json()["code"] == "file_not_found"
    assert path_response.status_code == 404
    assert path_response.json()["code"] == "file_not_found"


@pytest.mark.asyncio
async def test_remote_bytes_missing(client: AsyncClient, png_bytes: bytes, s3_client):
    created = (await upload_image(client, png_bytes, storage_type="remote")).json()["data"]
    s3_client.objects.clear()

    response = await client.get(f"{IMAGES}/{created['id']}")

    assert response.status_code == 404
    assert response.json()["code"] == "file_not_found"


@pytest.mark.asyncio
async def test_remote_backend_failure_is_redacted(client: AsyncClient, png_bytes: bytes, s3_client, monkeypatch):
    created = (await upload_image(client, png_bytes, storage_type="remote")).json()["data"]
    s3_client.fail_with = "AccessDenied"
    monkeypatch.setattr(get_settings(), "ENVIRONMENT", "production")

    response = await client.get(f"{IMAGES}/{created['id']}")

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "storage_error"
    assert "AccessDenied" not in body["error"]
    assert "details" not in body


@pytest.mark.asyncio
async def test_delete_image_twice(client: AsyncClient, png_bytes: bytes, local_storage):
    """Test deleting removes bytes and a second delete is a 404."""
    created = (await upload_image(client, png_bytes)).json()["data"]
    stored = local_storage.base_path / created["metadata"]["storagePath"]

    first = await client.delete(f"{IMAGES}/{created['id']}")
    second = await client.delete(f"{IMAGES}/{created['id']}")

    assert first.status_code == 200
    assert first.json()["success"] is True
    assert not stored.exists()
    assert second.status_code == 404


@pytest.mark.asyncio
async def test_delete_survives_backend_failure(client: AsyncClient, png_bytes: bytes, s3_client):
    """Test that a failing byte cleanup does not block record deletion."""
    created = (await upload_image(client, png_bytes, storage_type="remote")).json()["data"]
    s3_client.fail_with = "InternalError"

    response = await client.delete(f"{IMAGES}/{created['id']}")

    assert response.status_code == 200
    s3_client.fail_with = None
    assert (await client.get(f"{IMAGES}/{created['id']}/record")).status_code == 404


@pytest.mark.asyncio
async def test_local_public_url_is_served(client: AsyncClient, png_bytes: bytes):
    created = (await upload_image(client, png_bytes)).json()["data"]

    response = await client.get(created["publicUrl"])

    assert response.status_code == 200
    assert response.content == png_bytes


@pytest.mark.asyncio
async def test_tag_filter_matches_whole_tags(client: AsyncClient, png_bytes: bytes):
    await upload_image(client, png_bytes, tags="a")
    await upload_image(client, png_bytes, tags=json.dumps(["café"]))

    wildcard = (await client.get(IMAGES, params={"tag": "_"})).json()["data"]
    accented = (await client.get(IMAGES, params={"tag": "café"})).json()["data"]

    assert wildcard["total"] == 0
    assert accented["total"] == 1
    assert accented["items"][0]["tags"] == ["café"]


@pytest.mark.asyncio
async def test_search_percent_is_literal(client: AsyncClient, png_bytes: bytes):
    await upload_image(client, png_bytes, description="50% off")
    await upload_image(client, png_bytes, description="full price")

    listing = (await client.get(IMAGES, params={"search": "%"})).json()["data"]

    assert listing["total"] == 1
    assert listing["items"][0]["description"] == "50% off"


@pytest.mark.asyncio
async def test_error_responses_documented(client: AsyncClient):
    paths = (await client.get("/openapi.json")).json()["paths"]

    upload = paths[IMAGES]["post"]["responses"]
    stream = paths[f"{IMAGES}/{{record_id}}"]["get"]["responses"]

    assert upload["413"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert stream["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
