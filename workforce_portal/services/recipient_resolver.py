"""Resolve notification recipients to their registered device tokens."""

from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.config import DeliveryConfig
from workforce_portal.core.batching import resolve_by_batch
from workforce_portal.services.employee_service import EmployeeService

logger = structlog.get_logger(__name__)


@dataclass
class ResolvedRecipients:
    """Recipients partitioned by whether they can be reached on a device."""

    device_tokens: dict[str, list[str]] = field(default_factory=dict)
    without_tokens: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.device_tokens


class RecipientResolver:
    """Batched lookup of device tokens for a list of employees."""

    def __init__(self, config: DeliveryConfig, employee_service: EmployeeService | None = None):
        self.config = config
        self.employee_service = employee_service or EmployeeService()

    async def resolve(
        self,
        db: AsyncSession,
        transaction_id: str,
        user_ps_ids: list[str],
    ) -> ResolvedRecipients:
        """
        Resolve employees to device tokens without one query per employee.

        Args:
            db: Database session
            transaction_id: Request transaction id
            user_ps_ids: Employee PS ids, duplicates allowed

        Returns:
            Resolved recipients. Employees with no tokens and unknown ids are
            reported, never raised.
        """
        log = logger.bind(transaction_id=transaction_id)
        resolved = ResolvedRecipients()
        unique_ps_ids = list(dict.fromkeys(user_ps_ids))

        async def resolve_batch(batch: list[str]) -> None:
            tokens_by_employee = await self.employee_service.get_device_tokens_by_ps_ids(db, batch)
            for ps_id in batch:
                if ps_id not in tokens_by_employee:
                    resolved.unknown.append(ps_id)
                elif not tokens_by_employee[ps_id]:
                    resolved.without_tokens.append(ps_id)
                else:
                    resolved.device_tokens[ps_id] = tokens_by_employee[ps_id]

        await resolve_by_batch(
            unique_ps_ids,
            self.config.device_token_batch_size,
            resolve_batch,
            delay_seconds=self.config.batch_delay_seconds,
        )

        if resolved.without_tokens:
            log.warning("recipients_without_device_tokens", user_ps_ids=resolved.without_tokens)
        if resolved.unknown:
            log.warning("recipients_not_found", user_ps_ids=resolved.unknown)

        log.info(
            "recipients_resolved",
            requested=len(unique_ps_ids),
            reachable=len(resolved.device_tokens),
        )
        return resolved
