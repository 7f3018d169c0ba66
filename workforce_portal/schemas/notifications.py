"""Notification schemas."""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from workforce_portal.core.enums import (
    Audience,
    NotificationOrigin,
    NotificationPlacement,
    NotificationType,
    Priority,
)


# Ids are stored in String(64) columns
TargetId = Annotated[str, Field(max_length=64)]


class NotificationCreator(BaseModel):
    """Employee who created a notification."""

    employee_ps_id: TargetId
    display_name: str | None = None


class NotificationCreate(BaseModel):
    """
    Request to send a notification.

    Required fields depend on the requested placements, so presence checks
    happen in the notification service rather than here.
    """

    notification_id: str | None = Field(
        default=None, max_length=64, description="Override the generated id"
    )
    priority: Priority | None = None
    expires_at: datetime | str | None = None
    placements: list[NotificationPlacement] = Field(default_factory=list)
    redirection_screen: str | None = Field(default=None, max_length=100)
    redirection_screen_props: dict[str, Any] | None = None
    visibility: Audience | None = None
    audience_level: Audience | None = None
    notification_type: NotificationType | None = None
    origin: NotificationOrigin | None = None
    title: str | None = None
    body: str | None = None
    description: str | None = None
    user_ps_ids: list[TargetId] | None = None
    branch_ids: list[TargetId] | None = None
    division_ids: list[TargetId] | None = None
    provincial_codes: list[TargetId] | None = None
    created_by: NotificationCreator | None = None
    is_clearable: bool | None = None


class NotificationAudienceFilter(BaseModel):
    """Caller scope for the audience filtered notification list."""

    branch_ids: list[str] | None = None
    division_ids: list[str] | None = None
    provincial_codes: list[str] | None = None
    notification_type: NotificationType | None = None
    is_deleted: bool | None = False


class NotificationListOptions(BaseModel):
    """Search, sort and paging options for the audience filtered list."""

    search: str | None = None
    sort_field: str | None = None
    sort_order: Literal["asc", "desc"] = "desc"
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=100, ge=1)


class UserNotificationFilter(BaseModel):
    """Filter for a user's personal inbox."""

    user_ps_id: str
    branch_ids: list[str] | None = None
    is_deleted: bool = False


class UserNotificationListOptions(BaseModel):
    """Sort and paging options for the personal inbox."""

    sort_field: str | None = None
    sort_order: Literal["asc", "desc"] = "desc"
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=10, ge=1)


class NotificationInteractionCreate(BaseModel):
    """Interaction recorded by a recipient against a notification."""

    notification_id: str
    interaction_type: str
    interacted_user_ps_id: str
    user_display_name: str | None = None
    user_image_link: str | None = None


class NotificationInteractionRequest(BaseModel):
    """Schema for the interaction endpoint body."""

    interaction_type: str = Field(..., min_length=1)


class NotificationCreatedResponse(BaseModel):
    """Schema for notification send response."""

    success: bool = True
    notification_id: str


class NotificationInteractionResponse(BaseModel):
    """Schema for interaction response.

    pending is set when the notification is not known yet and the
    interaction was parked in the cache instead.
    """

    success: bool = True
    notification_id: str
    pending: bool = False


class NotificationRecord(BaseModel):
    """Schema for notification record."""

    notification_id: str
    priority: str | None
    expires_at: datetime | None
    placements: list[str]
    redirection_screen: str | None
    redirection_data: dict | None
    visibility: str | None
    audience_level: str | None
    notification_type: str
    status: str
    origin: str
    title: str
    body: str
    description: str | None
    user_ps_ids: list[str]
    branch_ids: list[str]
    division_ids: list[str]
    provincial_codes: list[str]
    is_clearable: bool
    is_deleted: bool
    created_by_ps_id: str | None
    created_by_name: str | None
    valid_from: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class NotificationInteractionRecord(BaseModel):
    """Schema for notification interaction record."""

    id: UUID
    notification_id: str
    interaction_type: str
    interacted_user_ps_id: str
    user_display_name: str | None
    user_image_link: str | None
    interacted_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class TopicSubscriptionRequest(BaseModel):
    """Schema for subscribing a device token to push topics."""

    token: str = Field(..., min_length=1)
    topics: list[str] = Field(..., min_length=1)


class PushTokenRegister(BaseModel):
    """Schema for registering a device token."""

    device_token: str = Field(..., description="Firebase Cloud Messaging token")
    platform: str = Field(
        ...,
        description="Platform type",
        pattern="^(android|ios|web)$",
    )


class PushTokenResponse(BaseModel):
    """Schema for push token response."""

    id: UUID
    employee_ps_id: str
    device_token: str
    platform: str
    is_active: bool
    last_used_at: datetime | None
    created_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True
