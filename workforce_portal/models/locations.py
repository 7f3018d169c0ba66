"""Branch location model using SQLAlchemy Core."""

from sqlalchemy import Boolean, Column, DateTime, String, Table, Text, func, true

from workforce_portal.models.base import metadata

branches = Table(
    "branches",
    metadata,
    Column("branch_id", String(64), primary_key=True),
    Column("branch_name", Text, nullable=False),
    Column("division_id", String(64), nullable=True),
    Column("province_code", String(8), nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
