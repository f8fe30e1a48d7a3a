"""
FastAPI dependency injection functions.
Provides common dependencies used across endpoints.
"""

from typing import Annotated, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.db.session import get_db
from app.models.asset import AssetKind
from app.services.asset_kinds import get_profile
from app.services.asset_service import AssetService
from app.services.ingestion import IngestionPipeline
from app.services.retrieval import RetrievalDispatcher
from app.storage import LocalStorageBackend, S3StorageBackend, get_local_storage, get_remote_storage


# Type aliases for cleaner endpoint signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
LocalStorage = Annotated[LocalStorageBackend, Depends(get_local_storage)]
RemoteStorage = Annotated[S3StorageBackend, Depends(get_remote_storage)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_ingestion_pipeline(local: LocalStorage, remote: RemoteStorage) -> IngestionPipeline:
    return IngestionPipeline(local, remote)


def get_retrieval_dispatcher(local: LocalStorage, remote: RemoteStorage) -> RetrievalDispatcher:
    return RetrievalDispatcher(local, remote)


Pipeline = Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)]
Dispatcher = Annotated[RetrievalDispatcher, Depends(get_retrieval_dispatcher)]


def asset_service_for(kind: AssetKind) -> Callable[..., AssetService]:
    """
    Dependency factory for the service of one asset kind.

    Usage:
        @router.get("")
        async def list_images(service: AssetService = Depends(asset_service_for(AssetKind.IMAGE))):
            ...
    """
    profile = get_profile(kind)

    def _get_service(db: DbSession, pipeline: Pipeline, dispatcher: Dispatcher) -> AssetService:
        return AssetService(db, profile, pipeline, dispatcher)

    return _get_service
