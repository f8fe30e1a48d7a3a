"""
Health and metrics endpoints.
No authentication required.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import is_using_sqlite_fallback
from app.dependencies import DbSession, LocalStorage
from app.services.asset_kinds import KIND_PROFILES
from app.services.metrics import get_metrics_collector

router = APIRouter()


async def _storage_totals(db: DbSession) -> tuple[dict[str, int], dict[str, int]]:
    """Record counts and stored bytes per asset kind."""
    counts: dict[str, int] = {}
    sizes: dict[str, int] = {}
    for kind, profile in KIND_PROFILES.items():
        model = profile.model
        result = await db.execute(select(func.count(model.id), func.sum(model.size)))
        count, size = result.one()
        counts[kind.value] = count or 0
        sizes[kind.value] = size or 0
    return counts, sizes


@router.get("/health")
async def health_check(db: DbSession, local: LocalStorage):
    """
    Service health check endpoint.

    Returns:
        {"status": "ok"} when service is healthy
        {"status": "degraded", "issues": [...]} when there are issues
    """
    issues = []
    warnings = []

    if is_using_sqlite_fallback():
        warnings.append("Using SQLite dev fallback - PostgreSQL not available")

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        issues.append(f"Database: {str(e)}")

    try:
        local.ensure_root()
    except OSError as e:
        issues.append(f"Local storage: {str(e)}")

    if issues:
        return {
            "status": "degraded",
            "issues": issues,
        }

    response = {
        "status": "ok",
        "database": "sqlite (dev fallback)" if is_using_sqlite_fallback() else "postgresql",
    }

    if warnings:
        response["warnings"] = warnings

    return response


@router.get("/metrics")
async def metrics(db: DbSession):
    """Request metrics plus record counts and stored bytes per asset kind."""
    metrics_data = get_metrics_collector().get_metrics()
    counts, sizes = await _storage_totals(db)
    metrics_data["storage"] = {
        "assets_by_kind": counts,
        "bytes_by_kind": sizes,
        "total_assets": sum(counts.values()),
        "total_storage_bytes": sum(sizes.values()),
    }
    return metrics_data


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def metrics_prometheus(db: DbSession):
    """
    Prometheus text exposition format endpoint.
    Compatible with Prometheus scraping.
    """
    collector = get_metrics_collector()
    counts, sizes = await _storage_totals(db)

    text_output = collector.to_prometheus()
    text_output += collector.gauge("assets", "Stored records by asset kind", counts)
    text_output += collector.gauge("storage_bytes", "Stored bytes by asset kind", sizes)

    return PlainTextResponse(
        content=text_output,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
