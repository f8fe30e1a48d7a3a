"""
Asset endpoints.
One router per asset kind, built from the kind's upload profile.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse

from app.auth.dependencies import Uploader, resolve_owner_id
from app.core.exceptions import ValidationException
from app.core.responses import success_payload
from app.dependencies import asset_service_for
from app.models.asset import AssetKind
from app.schemas.asset import (
    AssetListParams,
    AssetListResponse,
    AssetPathResponse,
    AssetRecordResponse,
    record_to_response,
)
from app.schemas.error import ErrorResponse
from app.services.asset_kinds import get_profile
from app.services.asset_service import AssetService
from app.services.ingestion import IncomingFile
from app.services.metrics import get_metrics_collector

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Record or stored bytes not found"},
    500: {"model": ErrorResponse, "description": "Storage backend failure"},
}


def parse_tags(tags: str | None) -> list[str]:
    """Parse a tags form field: a JSON array or a comma-separated string."""
    if not tags:
        return []
    if tags.lstrip().startswith("["):
        try:
            parsed = json.loads(tags)
        except json.JSONDecodeError:
            raise ValidationException("tags must be a JSON array or comma-separated list")
        if not isinstance(parsed, list) or not all(isinstance(t, str) for t in parsed):
            raise ValidationException("tags must be a list of strings")
        return [t.strip() for t in parsed if t.strip()]
    return [t.strip() for t in tags.split(",") if t.strip()]


def parse_metadata(metadata: str | None) -> dict[str, Any] | None:
    """Parse the metadata form field, which must hold a JSON object."""
    if not metadata:
        return None
    try:
        parsed = json.loads(metadata)
    except json.JSONDecodeError:
        raise ValidationException("metadata must be a JSON object")
    if not isinstance(parsed, dict):
        raise ValidationException("metadata must be a JSON object")
    return parsed


async def read_upload(file: UploadFile | None) -> IncomingFile | None:
    if file is None or not file.filename:
        return None
    data = await file.read()
    return IncomingFile(original_name=file.filename, content_type=file.content_type, data=data)


def build_asset_router(kind: AssetKind, with_file_upload: bool = True) -> APIRouter:
    """
    Build the router for one asset kind.

    Args:
        kind: Asset kind served by the router
        with_file_upload: Add the multipart POST endpoint

    Returns:
        Router exposing list, upload, stream, record, path and delete
    """
    profile = get_profile(kind)
    get_service = asset_service_for(kind)
    router = APIRouter(responses=ERROR_RESPONSES)

    @router.get("", response_model=AssetListResponse)
    async def list_assets(
        service: AssetService = Depends(get_service),
        page: int = Query(default=1, ge=1, description="Page number"),
        limit: int = Query(default=10, ge=1, le=100, description="Page size"),
        search: str | None = Query(default=None, description="Search names and description"),
        format: str | None = Query(default=None, description="Mesh format filter"),
        tag: str | None = Query(default=None, description="Tag filter"),
    ):
        """List records newest first with pagination."""
        params = AssetListParams(page=page, limit=limit, search=search, format=format, tag=tag)
        return success_payload(await service.list_records(params))

    if with_file_upload:

        @router.post(
            "",
            status_code=201,
            response_model=AssetRecordResponse,
            responses={413: {"model": ErrorResponse, "description": "Upload too large"}},
        )
        async def upload_asset(
            user: Uploader,
            service: AssetService = Depends(get_service),
            file: UploadFile | None = File(
                default=None,
                alias=profile.upload_field,
                description=f"{profile.label} file",
            ),
            storageType: str | None = Form(default=None, description="local, remote or s3"),
            userId: str | None = Form(default=None),
            description: str | None = Form(default=None, max_length=1000),
            tags: str | None = Form(default=None, description="Comma-separated or JSON array"),
            metadata: str | None = Form(default=None, description="JSON object"),
        ):
            """
            Upload a file.

            The file goes to local disk or object storage depending on
            storageType. Mesh uploads get their geometry extracted.
            """
            record = await service.upload(
                await read_upload(file),
                storage_type=storageType,
                description=description,
                tags=parse_tags(tags),
                metadata=parse_metadata(metadata),
                owner_id=resolve_owner_id(user, userId),
            )
            get_metrics_collector().record_upload(kind.value, record.storage_kind.value, record.size)
            return success_payload(record_to_response(record))

    @router.get("/{record_id}")
    async def stream_asset(record_id: str, service: AssetService = Depends(get_service)):
        """Stream the stored bytes with their content type."""
        record, stream = await service.open(record_id)

        headers = {"Content-Disposition": f'inline; filename="{record.file_name}"'}
        if stream.size is not None:
            headers["Content-Length"] = str(stream.size)

        return StreamingResponse(
            stream.chunks,
            media_type=stream.content_type,
            headers=headers,
        )

    @router.get("/{record_id}/record", response_model=AssetRecordResponse)
    async def get_asset_record(record_id: str, service: AssetService = Depends(get_service)):
        """Get the record without its bytes."""
        record = await service.get(record_id)
        return success_payload(record_to_response(record))

    @router.get("/{record_id}/path", response_model=AssetPathResponse, response_model_by_alias=True)
    async def get_asset_path(record_id: str, service: AssetService = Depends(get_service)):
        """Get the locator and public URL of the stored bytes."""
        return await service.describe(record_id)

    @router.delete("/{record_id}")
    async def delete_asset(
        record_id: str,
        user: Uploader,
        service: AssetService = Depends(get_service),
    ):
        """
        Delete a record and its bytes.

        Byte cleanup is best effort; the record is removed even if the
        backend delete fails.
        """
        await service.delete(record_id)
        return {"success": True, "message": f"{profile.label} deleted successfully"}

    return router
