"""
Integer array endpoints.
Arrays arrive as JSON and are stored as a JSON document on either backend.
"""

from fastapi import Depends

from app.api.v1.assets import build_asset_router
from app.auth.dependencies import Uploader, resolve_owner_id
from app.core.responses import success_payload
from app.dependencies import asset_service_for
from app.models.asset import AssetKind
from app.schemas.asset import AssetRecordResponse, IntArrayCreate, record_to_response
from app.services.asset_service import AssetService
from app.services.metrics import get_metrics_collector

router = build_asset_router(AssetKind.INT_ARRAY, with_file_upload=False)


@router.post("", status_code=201, response_model=AssetRecordResponse)
async def create_int_array(
    body: IntArrayCreate,
    user: Uploader,
    service: AssetService = Depends(asset_service_for(AssetKind.INT_ARRAY)),
):
    """
    Store an integer array.

    Dimensions default to [len(data), 1].
    """
    record = await service.create_int_array(body, owner_id=resolve_owner_id(user, body.user_id))
    get_metrics_collector().record_upload(
        AssetKind.INT_ARRAY.value, record.storage_kind.value, record.size
    )
    return success_payload(record_to_response(record))
