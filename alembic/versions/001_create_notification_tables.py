"""Create employee, location and notification tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def _targeting_columns() -> list[sa.Column]:
    return [
        sa.Column(name, postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False)
        for name in ("user_ps_ids", "branch_ids", "division_ids", "provincial_codes")
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "employees",
        sa.Column("ps_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("job_level", sa.Integer(), server_default="1", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("ps_id"),
    )

    op.create_table(
        "employee_alerts",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("employee_ps_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("alert_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("alert_name", sa.Text(), nullable=False),
        sa.Column("alert_title", sa.Text(), nullable=False),
        sa.Column("alert_desc", sa.Text(), nullable=True),
        sa.Column(
            "alert_added_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["employee_ps_id"], ["employees.ps_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_ps_id", "alert_id", name="unique_employee_alert"),
    )
    op.create_index(
        "idx_employee_alerts_employee", "employee_alerts", ["employee_ps_id", "alert_added_at"]
    )

    op.create_table(
        "push_tokens",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("employee_ps_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("device_token", sa.Text(), nullable=False),
        sa.Column("platform", sa.VARCHAR(length=10), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("last_used_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "platform IN ('android', 'ios', 'web')", name="push_tokens_platform_check"
        ),
        sa.ForeignKeyConstraint(["employee_ps_id"], ["employees.ps_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "employee_ps_id", "device_token", name="unique_employee_device_token"
        ),
    )
    op.create_index("ix_push_tokens_employee_ps_id", "push_tokens", ["employee_ps_id"])
    op.create_index("ix_push_tokens_is_active", "push_tokens", ["is_active"])

    op.create_table(
        "branches",
        sa.Column("branch_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("branch_name", sa.Text(), nullable=False),
        sa.Column("division_id", sa.VARCHAR(length=64), nullable=True),
        sa.Column("province_code", sa.VARCHAR(length=8), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("branch_id"),
    )

    op.create_table(
        "prerequisites",
        sa.Column("prerequisite_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("audience_level", sa.VARCHAR(length=20), nullable=True),
        *_targeting_columns(),
        sa.Column(
            "access_level_names",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("status", sa.VARCHAR(length=20), server_default="Active", nullable=False),
        sa.Column("skippable", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("declinable", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "requires_assertion", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint("status IN ('Active', 'Inactive')", name="prerequisites_status_check"),
        sa.PrimaryKeyConstraint("prerequisite_id"),
    )

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("priority", sa.VARCHAR(length=20), nullable=True),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("placements", postgresql.JSONB(), nullable=False),
        sa.Column("redirection_screen", sa.VARCHAR(length=100), nullable=True),
        sa.Column("redirection_data", postgresql.JSONB(), nullable=True),
        sa.Column("visibility", sa.VARCHAR(length=20), nullable=True),
        sa.Column("audience_level", sa.VARCHAR(length=20), nullable=True),
        sa.Column("notification_type", sa.VARCHAR(length=20), nullable=False),
        sa.Column("status", sa.VARCHAR(length=20), server_default="Pending", nullable=False),
        sa.Column("origin", sa.VARCHAR(length=20), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_targeting_columns(),
        sa.Column("is_clearable", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_by_ps_id", sa.VARCHAR(length=64), nullable=True),
        sa.Column("created_by_name", sa.Text(), nullable=True),
        sa.Column(
            "valid_from",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "priority IS NULL OR priority IN ('Highest', 'High', 'Medium', 'Low')",
            name="notifications_priority_check",
        ),
        sa.CheckConstraint(
            "status IN ('Pending', 'Failed', 'Sent')",
            name="notifications_status_check",
        ),
        sa.PrimaryKeyConstraint("notification_id"),
    )
    op.create_index("idx_notifications_created_at", "notifications", ["created_at"])
    op.create_index(
        "idx_notifications_visibility_type",
        "notifications",
        ["visibility", "notification_type", "is_deleted"],
    )
    op.create_index("idx_notifications_expires_at", "notifications", ["expires_at"])

    op.create_table(
        "notification_audiences",
        sa.Column("notification_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("dimension", sa.VARCHAR(length=20), nullable=False),
        sa.Column("target_id", sa.VARCHAR(length=64), nullable=False),
        sa.CheckConstraint(
            "dimension IN ('user', 'branch', 'division', 'province')",
            name="notification_audiences_dimension_check",
        ),
        sa.ForeignKeyConstraint(
            ["notification_id"], ["notifications.notification_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("notification_id", "dimension", "target_id"),
    )
    op.create_index(
        "idx_notification_audiences_target",
        "notification_audiences",
        ["dimension", "target_id"],
    )

    op.create_table(
        "notification_interactions",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("notification_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("interaction_type", sa.VARCHAR(length=20), nullable=False),
        sa.Column("interacted_user_ps_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("user_display_name", sa.Text(), nullable=True),
        sa.Column("user_image_link", sa.Text(), nullable=True),
        sa.Column(
            "interacted_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "interaction_type IN ('Read', 'Acknowledged', 'Dismissed')",
            name="notification_interactions_type_check",
        ),
        sa.ForeignKeyConstraint(
            ["notification_id"], ["notifications.notification_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "notification_id",
            "interacted_user_ps_id",
            name="unique_notification_interaction_user",
        ),
    )

    op.create_table(
        "push_notification_logs",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("notification_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("notification_mode", sa.VARCHAR(length=20), nullable=False),
        sa.Column("notification_type", sa.VARCHAR(length=20), nullable=False),
        sa.Column("notification_origin", sa.VARCHAR(length=20), nullable=False),
        sa.Column("user_ps_id", sa.VARCHAR(length=64), nullable=False),
        sa.Column("device_token", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.VARCHAR(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('Sent', 'Failed')",
            name="push_notification_logs_status_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_push_notification_logs_user_mode",
        "push_notification_logs",
        ["user_ps_id", "notification_mode"],
    )
    op.create_index(
        "idx_push_notification_logs_notification",
        "push_notification_logs",
        ["notification_id"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("push_notification_logs")
    op.drop_table("notification_interactions")
    op.drop_table("notification_audiences")
    op.drop_table("notifications")
    op.drop_table("prerequisites")
    op.drop_table("branches")
    op.drop_table("push_tokens")
    op.drop_table("employee_alerts")
    op.drop_table("employees")
