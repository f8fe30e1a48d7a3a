"""
Typed Asset Store API - Main Application Entry Point.

FastAPI application storing images, integer arrays and 3D model files on
local disk or S3-compatible object storage.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.staticfiles import StaticFiles

from app import __version__
from app.config import get_settings
from app.core.exceptions import AssetAPIException
from app.core.responses import create_error_response
from app.api.v1.router import api_router
from app.services.metrics import MetricsMiddleware

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    logger.info(f"Default storage kind: {settings.DEFAULT_STORAGE_KIND}")
    logger.info(f"Local upload root: {settings.LOCAL_STORAGE_PATH}")
    logger.info(f"Auth required for writes: {settings.AUTH_REQUIRED}")

    from app.db.session import engine, is_using_sqlite_fallback

    # Auto-create tables for SQLite (dev mode)
    if is_using_sqlite_fallback():
        logger.warning("[DEV MODE] Using SQLite fallback database")
        from app.db.base import Base
        # Import all models to register them
        from app.models import ImageAsset, IntArrayAsset, Model3DAsset, ObjFileAsset, User  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Development database ready")
    else:
        logger.info("Database: PostgreSQL")

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
## Typed Asset Store API

Upload, list, stream and delete typed assets.

### Asset kinds
- **Images** (`/images`, multipart field `photo`)
- **3D models** (`/3d-models`: obj, fbx, glb, gltf, stl, dae, 3ds, blend)
- **OBJ files** (`/obj-files`, geometry extracted on upload)
- **Integer arrays** (`/int-arrays`, JSON body)

Every upload picks its backend with `storageType` (`local` or `remote`).
    """,
    version=__version__,
    openapi_tags=[
        {"name": "images", "description": "Image uploads"},
        {"name": "3d-models", "description": "3D model uploads"},
        {"name": "obj-files", "description": "OBJ uploads with geometry extraction"},
        {"name": "int-arrays", "description": "Integer array datasets"},
        {"name": "auth", "description": "Accounts and tokens"},
        {"name": "health", "description": "Service health checks"},
    ],
    lifespan=lifespan,
)

# CORS middleware for cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(MetricsMiddleware)


@app.exception_handler(AssetAPIException)
async def asset_api_exception_handler(request: Request, exc: AssetAPIException) -> JSONResponse:
    """Render API exceptions as {"success": false, "error", "code", "details"?}."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=get_settings().is_development),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests as 400 validation_failed."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"Invalid {field}: {first.get('msg')}" if field else "Request validation failed"
    return create_error_response(
        error="validation_failed",
        message=message,
        status_code=400,
        details=[
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in errors
        ] if get_settings().is_development else None,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler for unexpected errors.
    Logs the full error but returns a sanitized response.
    """
    logger.exception(f"Unexpected error: {exc}")
    details = None
    if get_settings().is_development:
        details = {"exception": repr(exc), "traceback": traceback.format_exc()}
    return create_error_response(
        error="internal_error",
        message="An unexpected error occurred",
        status_code=500,
        details=details,
    )


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_PREFIX)

# Locally stored bytes are served as static files
app.mount(
    settings.LOCAL_PUBLIC_PREFIX,
    StaticFiles(directory=settings.LOCAL_STORAGE_PATH, check_dir=False),
    name="uploads",
)


@app.get("/", include_in_schema=False)
async def root():
    """Service info."""
    return {
        "name": settings.PROJECT_NAME,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
        "api": settings.API_V1_PREFIX,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
