"""Delivery log service for per-device push outcomes."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.core.enums import NotificationPlacement, NotificationStatus
from workforce_portal.core.exceptions import ValidationException
from workforce_portal.models.notifications import push_notification_logs
from workforce_portal.services.push_notification_service import PushResult

logger = structlog.get_logger(__name__)

REQUIRED_LOG_FIELDS = (
    "notification_id",
    "notification_mode",
    "notification_type",
    "notification_origin",
    "user_ps_id",
    "device_token",
    "title",
    "body",
    "status",
)


class DeliveryLogService:
    """Service for the optional push delivery log."""

    @staticmethod
    def build_entries(
        notification_id: str,
        user_ps_id: str,
        result: PushResult,
        notification_type: str,
        notification_origin: str,
        title: str,
        body: str,
        description: str | None = None,
        notification_mode: str = NotificationPlacement.PUSH,
    ) -> list[dict[str, Any]]:
        """Build one log entry per device token outcome, failures first."""
        now = datetime.now(UTC)
        outcomes = [(token, NotificationStatus.FAILED) for token in result.failed_tokens] + [
            (token, NotificationStatus.SENT) for token in result.success_tokens
        ]

        return [
            {
                "id": uuid4(),
                "notification_id": notification_id,
                "notification_mode": str(notification_mode),
                "notification_type": str(notification_type),
                "notification_origin": str(notification_origin),
                "user_ps_id": user_ps_id,
                "device_token": token,
                "title": title,
                "body": body,
                "description": description,
                "status": str(status),
                "created_at": now,
                "updated_at": now,
            }
            for token, status in outcomes
        ]

    @staticmethod
    async def store_notification_log(
        db: AsyncSession,
        transaction_id: str,
        entries: list[dict[str, Any]],
    ) -> int:
        """
        Store delivery log entries in a single insert.

        Raises:
            ValidationException: If any entry misses a required field
        """
        log = logger.bind(transaction_id=transaction_id)

        if not entries:
            return 0

        if any(not entry.get(name) for entry in entries for name in REQUIRED_LOG_FIELDS):
            log.error("notification_log_invalid", count=len(entries))
            raise ValidationException("Missing required parameters")

        await db.execute(insert(push_notification_logs), entries)
        await db.commit()

        log.info("notification_log_stored", count=len(entries))
        return len(entries)

    @staticmethod
    async def get_notification_logs(
        db: AsyncSession,
        notification_id: str,
        user_ps_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Get delivery log entries for a notification."""
        query = select(push_notification_logs).where(
            push_notification_logs.c.notification_id == notification_id
        )
        if user_ps_id:
            query = query.where(push_notification_logs.c.user_ps_id == user_ps_id)

        result = await db.execute(query.order_by(push_notification_logs.c.created_at))
        return [dict(row._mapping) for row in result.fetchall()]
