"""Employee service for device tokens and top alerts."""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from sqlalchemy import delete, desc, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.core.exceptions import NotFoundException
from workforce_portal.models.employees import employee_alerts, employees
from workforce_portal.models.push_tokens import push_tokens

logger = structlog.get_logger(__name__)


class EmployeeService:
    """Service for the employee store consumed by the notification core."""

    @staticmethod
    async def get_device_tokens_by_ps_ids(
        db: AsyncSession,
        ps_ids: list[str],
    ) -> dict[str, list[str]]:
        """
        Get active device tokens for a batch of employees.

        Args:
            db: Database session
            ps_ids: Employee PS ids, one batch

        Returns:
            Mapping of every known employee to its tokens, newest registration
            first. Unknown employees are absent from the mapping.
        """
        if not ps_ids:
            return {}

        result = await db.execute(select(employees.c.ps_id).where(employees.c.ps_id.in_(ps_ids)))
        tokens_by_employee: dict[str, list[str]] = {row.ps_id: [] for row in result.fetchall()}

        query = (
            select(push_tokens.c.employee_ps_id, push_tokens.c.device_token)
            .where(
                push_tokens.c.employee_ps_id.in_(ps_ids),
                push_tokens.c.is_active == True,  # noqa: E712
            )
            .order_by(desc(push_tokens.c.created_at), desc(push_tokens.c.device_token))
        )
        result = await db.execute(query)
        for row in result.fetchall():
            tokens_by_employee.setdefault(row.employee_ps_id, []).append(row.device_token)

        return tokens_by_employee

    @staticmethod
    async def register_token(
        db: AsyncSession,
        ps_id: str,
        device_token: str,
        platform: str,
    ) -> dict[str, Any]:
        """
        Register or reactivate a device token for an employee.

        Args:
            db: Database session
            ps_id: Employee PS id
            device_token: FCM registration token
            platform: Platform (android, ios, web)

        Returns:
            Created/updated token record
        """
        query = select(push_tokens).where(
            push_tokens.c.employee_ps_id == ps_id,
            push_tokens.c.device_token == device_token,
        )
        result = await db.execute(query)
        existing_token = result.first()

        if existing_token:
            await db.execute(
                update(push_tokens)
                .where(push_tokens.c.id == existing_token.id)
                .values(
                    is_active=True,
                    last_used_at=datetime.now(UTC),
                    platform=platform,
                )
            )
            await db.commit()

            result = await db.execute(
                select(push_tokens).where(push_tokens.c.id == existing_token.id)
            )
            return dict(result.first()._mapping)

        token_id = uuid4()
        now = datetime.now(UTC)
        await db.execute(
            insert(push_tokens).values(
                id=token_id,
                employee_ps_id=ps_id,
                device_token=device_token,
                platform=platform,
                is_active=True,
                last_used_at=now,
                created_at=now,
            )
        )
        await db.commit()

        result = await db.execute(select(push_tokens).where(push_tokens.c.id == token_id))
        return dict(result.first()._mapping)

    @staticmethod
    async def deactivate_token(
        db: AsyncSession,
        ps_id: str,
        device_token: str,
    ) -> bool:
        """
        Deactivate a specific device token.

        Returns:
            True if token was deactivated
        """
        result = await db.execute(
            update(push_tokens)
            .where(
                push_tokens.c.employee_ps_id == ps_id,
                push_tokens.c.device_token == device_token,
            )
            .values(is_active=False)
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def add_user_alert(
        db: AsyncSession,
        transaction_id: str,
        ps_id: str,
        alert_id: str,
        alert_name: str,
        alert_title: str,
        alert_desc: str | None = None,
    ) -> str:
        """
        Put an alert at the top of an employee's outstanding alerts.

        An existing alert with the same id is replaced.

        Raises:
            NotFoundException: If the employee does not exist
        """
        log = logger.bind(transaction_id=transaction_id, ps_id=ps_id, alert_id=alert_id)

        result = await db.execute(select(employees.c.ps_id).where(employees.c.ps_id == ps_id))
        if result.first() is None:
            raise NotFoundException("User doesn't exists in the system!")

        await db.execute(
            delete(employee_alerts).where(
                employee_alerts.c.employee_ps_id == ps_id,
                employee_alerts.c.alert_id == alert_id,
            )
        )
        await db.execute(
            insert(employee_alerts).values(
                id=uuid4(),
                employee_ps_id=ps_id,
                alert_id=alert_id,
                alert_name=alert_name,
                alert_title=alert_title,
                alert_desc=alert_desc,
                alert_added_at=datetime.now(UTC),
            )
        )
        await db.commit()

        log.info("user_alert_added")
        return ps_id

    @staticmethod
    async def remove_user_alert(db: AsyncSession, ps_id: str, alert_id: str) -> int:
        """
        Remove an alert from an employee's outstanding alerts.

        Does not commit; the caller owns the transaction.

        Returns:
            Number of alerts removed
        """
        result = await db.execute(
            delete(employee_alerts).where(
                employee_alerts.c.employee_ps_id == ps_id,
                employee_alerts.c.alert_id == alert_id,
            )
        )
        return result.rowcount

    @staticmethod
    async def get_user_alerts(db: AsyncSession, ps_id: str) -> list[dict[str, Any]]:
        """Get an employee's outstanding alerts, newest first."""
        result = await db.execute(
            select(employee_alerts)
            .where(employee_alerts.c.employee_ps_id == ps_id)
            .order_by(desc(employee_alerts.c.alert_added_at))
        )
        return [dict(row._mapping) for row in result.fetchall()]
