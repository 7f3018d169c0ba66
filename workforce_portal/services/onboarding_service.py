"""Onboarding service for prerequisite records."""

from datetime import UTC, datetime
from uuid import uuid4

import structlog
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.core.enums import ActiveState, Audience, UserLevel
from workforce_portal.models.prerequisites import prerequisites

logger = structlog.get_logger(__name__)


class OnboardingService:
    """Service for onboarding prerequisites."""

    @staticmethod
    async def create_prerequisite(
        db: AsyncSession,
        transaction_id: str,
        title: str,
        description: str,
        audience_level: Audience | None = None,
        user_ps_ids: list[str] | None = None,
        branch_ids: list[str] | None = None,
        division_ids: list[str] | None = None,
        provincial_codes: list[str] | None = None,
        access_level_names: list[UserLevel] | None = None,
        expires_at: datetime | None = None,
        skippable: bool = True,
        declinable: bool = True,
        requires_assertion: bool = False,
    ) -> str:
        """
        Create an active prerequisite users must go through during onboarding.

        Returns:
            The new prerequisite id
        """
        prerequisite_id = f"prerequisite_{uuid4().hex}"

        await db.execute(
            insert(prerequisites).values(
                prerequisite_id=prerequisite_id,
                title=title,
                description=description,
                audience_level=audience_level,
                user_ps_ids=user_ps_ids or [],
                branch_ids=branch_ids or [],
                division_ids=division_ids or [],
                provincial_codes=provincial_codes or [],
                access_level_names=[str(level) for level in access_level_names or []],
                expires_at=expires_at,
                status=ActiveState.ACTIVE,
                skippable=skippable,
                declinable=declinable,
                requires_assertion=requires_assertion,
                created_at=datetime.now(UTC),
            )
        )
        await db.commit()

        logger.info(
            "prerequisite_created",
            transaction_id=transaction_id,
            prerequisite_id=prerequisite_id,
        )
        return prerequisite_id
