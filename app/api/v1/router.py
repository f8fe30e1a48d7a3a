"""
API v1 Router - Aggregates all v1 endpoints.
Base Path: /api/v1
"""

from fastapi import APIRouter

from app.api.v1 import auth, health, int_arrays
from app.api.v1.assets import build_asset_router
from app.models.asset import AssetKind
from app.services.asset_kinds import get_profile

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

for kind in (AssetKind.IMAGE, AssetKind.MODEL_3D, AssetKind.OBJ_FILE):
    profile = get_profile(kind)
    api_router.include_router(build_asset_router(kind), prefix=profile.route, tags=[profile.route.strip("/")])

api_router.include_router(
    int_arrays.router,
    prefix=get_profile(AssetKind.INT_ARRAY).route,
    tags=["int-arrays"],
)
