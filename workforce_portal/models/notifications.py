"""Notification models for the notification record, its audience index and delivery logs."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
    true,
)

from workforce_portal.models.base import JSONType, metadata

notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", String(64), primary_key=True),
    Column("priority", String(20), nullable=True),
    Column("expires_at", DateTime(timezone=True), nullable=True),
    Column("placements", JSONType, nullable=False),
    Column("redirection_screen", String(100), nullable=True),
    Column("redirection_data", JSONType, nullable=True),
    Column("visibility", String(20), nullable=True),
    Column("audience_level", String(20), nullable=True),
    Column("notification_type", String(20), nullable=False),
    Column("status", String(20), nullable=False, server_default="Pending"),
    Column("origin", String(20), nullable=False),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("user_ps_ids", JSONType, nullable=False),
    Column("branch_ids", JSONType, nullable=False),
    Column("division_ids", JSONType, nullable=False),
    Column("provincial_codes", JSONType, nullable=False),
    Column("is_clearable", Boolean, nullable=False, server_default=true()),
    Column("is_deleted", Boolean, nullable=False, server_default=false()),
    Column("created_by_ps_id", String(64), nullable=True),
    Column("created_by_name", Text, nullable=True),
    Column("valid_from", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "priority IS NULL OR priority IN ('Highest', 'High', 'Medium', 'Low')",
        name="notifications_priority_check",
    ),
    CheckConstraint(
        "status IN ('Pending', 'Failed', 'Sent')",
        name="notifications_status_check",
    ),
    Index("idx_notifications_created_at", "created_at"),
    Index("idx_notifications_visibility_type", "visibility", "notification_type", "is_deleted"),
    Index("idx_notifications_expires_at", "expires_at"),
)

# One row per targeted id so membership filters stay plain indexed lookups.
notification_audiences = Table(
    "notification_audiences",
    metadata,
    Column(
        "notification_id",
        String(64),
        ForeignKey("notifications.notification_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("dimension", String(20), primary_key=True),
    Column("target_id", String(64), primary_key=True),
    CheckConstraint(
        "dimension IN ('user', 'branch', 'division', 'province')",
        name="notification_audiences_dimension_check",
    ),
    Index("idx_notification_audiences_target", "dimension", "target_id"),
)

notification_interactions = Table(
    "notification_interactions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "notification_id",
        String(64),
        ForeignKey("notifications.notification_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("interaction_type", String(20), nullable=False),
    Column("interacted_user_ps_id", String(64), nullable=False),
    Column("user_display_name", Text, nullable=True),
    Column("user_image_link", Text, nullable=True),
    Column("interacted_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "interaction_type IN ('Read', 'Acknowledged', 'Dismissed')",
        name="notification_interactions_type_check",
    ),
    UniqueConstraint(
        "notification_id", "interacted_user_ps_id", name="unique_notification_interaction_user"
    ),
)

push_notification_logs = Table(
    "push_notification_logs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("notification_id", String(64), nullable=False),
    Column("notification_mode", String(20), nullable=False),
    Column("notification_type", String(20), nullable=False),
    Column("notification_origin", String(20), nullable=False),
    Column("user_ps_id", String(64), nullable=False),
    Column("device_token", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("status", String(20), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "status IN ('Sent', 'Failed')",
        name="push_notification_logs_status_check",
    ),
    Index("idx_push_notification_logs_user_mode", "user_ps_id", "notification_mode"),
    Index("idx_push_notification_logs_notification", "notification_id"),
)
