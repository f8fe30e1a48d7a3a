"""
Asset record store - async SQLAlchemy CRUD over one table per asset kind.
"""

import json
import math
from typing import Sequence
from uuid import UUID

from sqlalchemy import String, and_, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import RecordNotFoundException, ValidationException
from app.models.asset import AssetRecord, MeshFormat
from app.schemas.asset import AssetListParams
from app.services.asset_kinds import KindProfile


def page_count(total: int, limit: int) -> int:
    """Total pages for a listing, never less than one."""
    return max(1, math.ceil(total / limit))


class AssetRecordStore:
    """Record persistence for a single asset kind."""

    def __init__(self, db: AsyncSession, profile: KindProfile):
        self.db = db
        self.profile = profile
        self.model = profile.model

    async def create(self, record: AssetRecord) -> AssetRecord:
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def get(self, record_id: str) -> AssetRecord:
        """
        Get a record by ID.

        Raises:
            ValidationException: If the ID is not a UUID
            RecordNotFoundException: If no record has this ID
        """
        try:
            UUID(record_id)
        except (ValueError, TypeError):
            raise ValidationException("Invalid ID format", details={"id": record_id})

        result = await self.db.execute(select(self.model).where(self.model.id == record_id))
        record = result.scalar_one_or_none()

        if record is None:
            raise RecordNotFoundException(self.profile.label, record_id)

        return record

    async def list_records(self, params: AssetListParams) -> tuple[Sequence[AssetRecord], int]:
        """
        List records newest first with optional search and filters.

        Returns:
            Tuple of (records on the requested page, total matching count)
        """
        model = self.model
        conditions = []

        # Case-insensitive search on names and description
        if params.search:
            conditions.append(
                or_(
                    model.original_name.icontains(params.search, autoescape=True),
                    model.file_name.icontains(params.search, autoescape=True),
                    model.description.icontains(params.search, autoescape=True),
                )
            )

        if params.format and self.profile.has_geometry:
            try:
                mesh_format = MeshFormat(params.format.lower())
            except ValueError:
                raise ValidationException(
                    f"Unknown format: {params.format}",
                    details={"allowed": [f.value for f in MeshFormat]},
                )
            conditions.append(model.format == mesh_format)

        # Tags are a JSON list; match the element encoded the way the column serializes it
        if params.tag:
            conditions.append(
                cast(model.tags, String).contains(json.dumps(params.tag), autoescape=True)
            )

        query = select(model)
        count_query = select(func.count(model.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        count_result = await self.db.execute(count_query)
        total = count_result.scalar() or 0

        offset = (params.page - 1) * params.limit
        query = (
            query.order_by(model.created_at.desc(), model.id)
            .offset(offset)
            .limit(params.limit)
        )
        result = await self.db.execute(query)
        return result.scalars().all(), total

    async def delete(self, record: AssetRecord) -> None:
        await self.db.delete(record)
        await self.db.flush()
