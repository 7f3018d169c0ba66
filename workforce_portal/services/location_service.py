"""Location service for branch lookups."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.models.locations import branches


class LocationService:
    """Service for branch operations."""

    @staticmethod
    async def get_branches_by_ids(db: AsyncSession, branch_ids: list[str]) -> list[dict[str, Any]]:
        """Get the branches that exist among the given ids."""
        if not branch_ids:
            return []

        result = await db.execute(
            select(branches).where(branches.c.branch_id.in_(set(branch_ids)))
        )
        return [dict(row._mapping) for row in result.fetchall()]
