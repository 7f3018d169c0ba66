"""Onboarding prerequisite model using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    String,
    Table,
    Text,
    false,
    func,
    true,
)

from workforce_portal.models.base import JSONType, metadata

prerequisites = Table(
    "prerequisites",
    metadata,
    Column("prerequisite_id", String(64), primary_key=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("audience_level", String(20), nullable=True),
    Column("user_ps_ids", JSONType, nullable=False),
    Column("branch_ids", JSONType, nullable=False),
    Column("division_ids", JSONType, nullable=False),
    Column("provincial_codes", JSONType, nullable=False),
    Column("access_level_names", JSONType, nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=True),
    Column("status", String(20), nullable=False),
    Column("skippable", Boolean, nullable=False, server_default=true()),
    Column("declinable", Boolean, nullable=False, server_default=true()),
    Column("requires_assertion", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("status IN ('Active', 'Inactive')", name="prerequisites_status_check"),
)
