"""
Pytest configuration and fixtures for the asset store tests.
"""

import io
import os
import shutil
import tempfile
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

UPLOAD_ROOT = tempfile.mkdtemp(prefix="asset-store-uploads-")

# Settings are cached on first import; the static mount must serve the test upload root
os.environ["LOCAL_STORAGE_PATH"] = UPLOAD_ROOT
os.environ["LOCAL_PUBLIC_PREFIX"] = "/uploads"
os.environ["ENVIRONMENT"] = "development"

from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.storage import (  # noqa: E402
    LocalStorageBackend,
    S3StorageBackend,
    get_local_storage,
    get_remote_storage,
)

TEST_BUCKET = "test-bucket"

OBJ_TRIANGLE = b"v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n"


class FakeS3Client:
    """
    In-memory stand-in for a boto3 S3 client.

    Raises real botocore ClientErrors and returns StreamingBody objects so the
    backend's error mapping runs exactly as against S3.
    """

    def __init__(self):
        self.objects: dict[tuple[str, str], dict] = {}
        self.fail_with: str | None = None

    def _error(self, code: str, operation: str) -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": code}}, operation)

    def _check(self, operation: str) -> None:
        if self.fail_with:
            raise self._error(self.fail_with, operation)

    def put_object(self, Bucket, Key, Body, ContentType, Metadata=None):
        self._check("PutObject")
        self.objects[(Bucket, Key)] = {
            "Body": bytes(Body),
            "ContentType": ContentType,
            "Metadata": Metadata or {},
        }
        return {}

    def get_object(self, Bucket, Key):
        self._check("GetObject")
        obj = self.objects.get((Bucket, Key))
        if obj is None:
            raise self._error("NoSuchKey", "GetObject")
        return {
            "Body": StreamingBody(io.BytesIO(obj["Body"]), len(obj["Body"])),
            "ContentType": obj["ContentType"],
            "ContentLength": len(obj["Body"]),
        }

    def head_object(self, Bucket, Key):
        self._check("HeadObject")
        obj = self.objects.get((Bucket, Key))
        if obj is None:
            raise self._error("404", "HeadObject")
        return {"ContentLength": len(obj["Body"]), "ContentType": obj["ContentType"]}

    def delete_object(self, Bucket, Key):
        self._check("DeleteObject")
        self.objects.pop((Bucket, Key), None)
        return {}


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine on a throwaway SQLite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def local_storage() -> Generator[LocalStorageBackend, None, None]:
    """Local backend on the upload root the app serves, emptied around each test."""
    shutil.rmtree(UPLOAD_ROOT, ignore_errors=True)
    yield LocalStorageBackend(base_path=UPLOAD_ROOT, public_prefix="/uploads")
    shutil.rmtree(UPLOAD_ROOT, ignore_errors=True)


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def remote_storage(s3_client) -> S3StorageBackend:
    """S3 backend talking to the in-memory client."""
    return S3StorageBackend(
        bucket_name=TEST_BUCKET,
        region="us-east-1",
        client=s3_client,
    )


@pytest_asyncio.fixture(scope="function")
async def client(db_session, local_storage, remote_storage) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_local_storage] = lambda: local_storage
    app.dependency_overrides[get_remote_storage] = lambda: remote_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def obj_triangle() -> bytes:
    """Three vertices and one face."""
    return OBJ_TRIANGLE


@pytest.fixture
def png_bytes() -> bytes:
    """Bytes with a PNG signature; content is never decoded."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
