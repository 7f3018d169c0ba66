"""FastAPI dependencies."""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated

import httpx
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.config import DeliveryConfig, get_delivery_config
from workforce_portal.core.exceptions import UnauthorizedException
from workforce_portal.core.firebase import GoogleAccessTokenProvider
from workforce_portal.core.redis_client import CacheManager, get_redis_client
from workforce_portal.core.secrets import EnvironmentSecretStore, SecretStore
from workforce_portal.database import get_db
from workforce_portal.middleware.logging import get_transaction_id
from workforce_portal.services.employee_service import EmployeeService
from workforce_portal.services.notification_service import NotificationService
from workforce_portal.services.push_notification_service import PushNotificationService


@dataclass(frozen=True)
class CallerIdentity:
    """Caller identity forwarded by the upstream gateway."""

    ps_id: str
    display_name: str | None = None
    branch_ids: list[str] = field(default_factory=list)
    division_ids: list[str] = field(default_factory=list)
    provincial_codes: list[str] = field(default_factory=list)


def _split_header(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


async def get_current_identity(
    x_user_ps_id: Annotated[str | None, Header()] = None,
    x_user_display_name: Annotated[str | None, Header()] = None,
    x_user_branch_ids: Annotated[str | None, Header()] = None,
    x_user_division_ids: Annotated[str | None, Header()] = None,
    x_user_provincial_codes: Annotated[str | None, Header()] = None,
) -> CallerIdentity:
    """
    Read the caller identity from gateway headers.

    Location headers are comma separated lists.

    Raises:
        UnauthorizedException: If the caller PS id header is missing
    """
    if not x_user_ps_id:
        raise UnauthorizedException("Missing caller identity")

    return CallerIdentity(
        ps_id=x_user_ps_id,
        display_name=x_user_display_name,
        branch_ids=_split_header(x_user_branch_ids),
        division_ids=_split_header(x_user_division_ids),
        provincial_codes=_split_header(x_user_provincial_codes),
    )


async def get_request_transaction_id(request: Request) -> str:
    return get_transaction_id(request)


def get_cache_manager() -> CacheManager:
    return CacheManager(get_redis_client())


def build_notification_service(
    config: DeliveryConfig,
    secret_store: SecretStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NotificationService:
    """Wire the notification service and its push provider from config."""
    token_provider = GoogleAccessTokenProvider(
        secret_store or EnvironmentSecretStore(),
        config.firebase_secret_name,
    )
    push_service = PushNotificationService(config, token_provider, transport=transport)
    return NotificationService(config, push_service)


@lru_cache
def get_notification_service() -> NotificationService:
    """Get the process wide notification service."""
    return build_notification_service(get_delivery_config())


def get_employee_service() -> EmployeeService:
    return EmployeeService()


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentIdentity = Annotated[CallerIdentity, Depends(get_current_identity)]
TransactionId = Annotated[str, Depends(get_request_transaction_id)]
Cache = Annotated[CacheManager, Depends(get_cache_manager)]
Notifications = Annotated[NotificationService, Depends(get_notification_service)]
Employees = Annotated[EmployeeService, Depends(get_employee_service)]
