"""Notification endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, status

from workforce_portal.core.enums import NotificationType
from workforce_portal.core.exceptions import NotFoundException, NotificationNotFoundException
from workforce_portal.core.redis_client import CacheKey
from workforce_portal.dependencies import (
    Cache,
    CurrentIdentity,
    DatabaseSession,
    Employees,
    Notifications,
    TransactionId,
)
from workforce_portal.schemas.notifications import (
    NotificationAudienceFilter,
    NotificationCreate,
    NotificationCreatedResponse,
    NotificationCreator,
    NotificationInteractionCreate,
    NotificationInteractionRecord,
    NotificationInteractionRequest,
    NotificationInteractionResponse,
    NotificationListOptions,
    NotificationRecord,
    PushTokenRegister,
    PushTokenResponse,
    TopicSubscriptionRequest,
    UserNotificationFilter,
    UserNotificationListOptions,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send notification",
)
async def send_notification(
    notification: NotificationCreate,
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
) -> NotificationCreatedResponse:
    """
    Persist a notification and deliver it over its placements.

    Delivery is best effort: the notification exists once this returns, even
    if some recipients could not be reached.
    """
    if notification.created_by is None:
        notification.created_by = NotificationCreator(
            employee_ps_id=identity.ps_id,
            display_name=identity.display_name,
        )

    notification_id = await service.send_notification(db, transaction_id, notification)
    return NotificationCreatedResponse(notification_id=notification_id)


@router.get(
    "",
    response_model=list[NotificationRecord],
    summary="List notifications for the caller's locations",
)
async def list_notifications(
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
    search: str | None = Query(None, min_length=1),
    notification_type: NotificationType | None = None,
    sort_field: str | None = None,
    sort_order: Literal["asc", "desc"] = "desc",
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> list[NotificationRecord]:
    """List live notifications visible to the caller's branches, divisions and provinces."""
    notifications = await service.get_notifications(
        db,
        transaction_id,
        NotificationAudienceFilter(
            branch_ids=identity.branch_ids or None,
            division_ids=identity.division_ids or None,
            provincial_codes=identity.provincial_codes or None,
            notification_type=notification_type,
        ),
        NotificationListOptions(
            search=search,
            sort_field=sort_field,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        ),
    )
    return [NotificationRecord.model_validate(notification) for notification in notifications]


@router.get(
    "/me",
    response_model=list[NotificationRecord],
    summary="Get the caller's inbox",
)
async def get_my_notifications(
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
    sort_field: str | None = None,
    sort_order: Literal["asc", "desc"] = "desc",
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
) -> list[NotificationRecord]:
    """Get notifications addressed to the caller, most urgent first."""
    notifications = await service.get_user_notifications_by_filter(
        db,
        transaction_id,
        UserNotificationFilter(
            user_ps_id=identity.ps_id,
            branch_ids=identity.branch_ids or None,
        ),
        UserNotificationListOptions(
            sort_field=sort_field,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        ),
    )
    return [NotificationRecord.model_validate(notification) for notification in notifications]


@router.get(
    "/interactions",
    response_model=list[NotificationInteractionRecord],
    summary="Get the caller's interactions",
)
async def get_my_interactions(
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
    notification_ids: list[str] = Query(...),
) -> list[NotificationInteractionRecord]:
    """Get the caller's interactions with the given notifications."""
    interactions = await service.get_interacted_notifications_by_ids(
        db, transaction_id, notification_ids, identity.ps_id
    )
    return [NotificationInteractionRecord.model_validate(item) for item in interactions]


@router.post(
    "/topics/subscribe",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Subscribe a device to topics",
)
async def subscribe_to_topics(
    subscription: TopicSubscriptionRequest,
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    service: Notifications,
) -> None:
    """Subscribe a device token to each of the given topics."""
    for topic in subscription.topics:
        await service.subscribe_to_topic(transaction_id, subscription.token, topic)


@router.post(
    "/topics/unsubscribe",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unsubscribe a device from topics",
)
async def unsubscribe_from_topics(
    subscription: TopicSubscriptionRequest,
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    service: Notifications,
) -> None:
    """Unsubscribe a device token from each of the given topics."""
    for topic in subscription.topics:
        await service.unsubscribe_from_topic(transaction_id, subscription.token, topic)


@router.post(
    "/register-token",
    response_model=PushTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register device token",
)
async def register_device_token(
    token_data: PushTokenRegister,
    identity: CurrentIdentity,
    db: DatabaseSession,
    employees: Employees,
) -> PushTokenResponse:
    """
    Register or reactivate a device token for the caller.

    Should be called after sign in and whenever FCM rotates the token.
    """
    token = await employees.register_token(
        db,
        ps_id=identity.ps_id,
        device_token=token_data.device_token,
        platform=token_data.platform,
    )
    return PushTokenResponse.model_validate(token)


@router.delete(
    "/deactivate-token",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate device token",
)
async def deactivate_device_token(
    token_data: PushTokenRegister,
    identity: CurrentIdentity,
    db: DatabaseSession,
    employees: Employees,
) -> None:
    """Deactivate one of the caller's device tokens, e.g. on sign out."""
    deactivated = await employees.deactivate_token(db, identity.ps_id, token_data.device_token)
    if not deactivated:
        raise NotFoundException("Device token not found")


@router.get(
    "/{notification_id}",
    response_model=NotificationRecord,
    summary="Get notification by id",
)
async def get_notification(
    notification_id: str,
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
) -> NotificationRecord:
    """Get a notification, including expired and deleted ones."""
    notification = await service.get_notification_by_id(db, transaction_id, notification_id)
    if notification is None:
        raise NotFoundException("Notification not found")
    return NotificationRecord.model_validate(notification)


@router.delete(
    "/{notification_id}",
    response_model=NotificationCreatedResponse,
    summary="Remove notification",
)
async def remove_notification(
    notification_id: str,
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
    force: bool = False,
) -> NotificationCreatedResponse:
    """Soft delete a notification, or hard delete it with force=true."""
    if await service.get_notification_by_id(db, transaction_id, notification_id) is None:
        raise NotFoundException("Notification not found")

    await service.remove_notification_by_id(db, transaction_id, notification_id, force=force)
    return NotificationCreatedResponse(notification_id=notification_id)


@router.post(
    "/{notification_id}/interactions",
    response_model=NotificationInteractionResponse,
    summary="Record an interaction",
)
async def interact_with_notification(
    notification_id: str,
    interaction: NotificationInteractionRequest,
    identity: CurrentIdentity,
    transaction_id: TransactionId,
    db: DatabaseSession,
    service: Notifications,
    cache: Cache,
) -> NotificationInteractionResponse:
    """
    Record the caller's interaction with a notification.

    Interactions with notifications not stored yet are parked in the cache
    rather than rejected.
    """
    interaction_data = NotificationInteractionCreate(
        notification_id=notification_id,
        interaction_type=interaction.interaction_type,
        interacted_user_ps_id=identity.ps_id,
        user_display_name=identity.display_name,
    )

    try:
        await service.notification_interaction(db, transaction_id, interaction_data)
    except NotificationNotFoundException:
        cache.persist(
            CacheKey.notification_interaction(identity.ps_id, notification_id),
            interaction_data.model_dump(),
        )
        return NotificationInteractionResponse(notification_id=notification_id, pending=True)

    return NotificationInteractionResponse(notification_id=notification_id)
