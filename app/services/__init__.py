"""
Business logic services.
Services handle core operations separate from API endpoints.
"""

from app.services.asset_kinds import KIND_PROFILES, KindProfile, get_profile
from app.services.asset_service import AssetService
from app.services.auth_service import AuthService
from app.services.ingestion import IncomingFile, IngestionPipeline
from app.services.record_store import AssetRecordStore
from app.services.retrieval import RetrievalDispatcher

__all__ = [
    "KIND_PROFILES",
    "KindProfile",
    "get_profile",
    "AssetService",
    "AuthService",
    "IncomingFile",
    "IngestionPipeline",
    "AssetRecordStore",
    "RetrievalDispatcher",
]
