"""Employee and top alert models using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    true,
)

from workforce_portal.models.base import metadata

employees = Table(
    "employees",
    metadata,
    Column("ps_id", String(64), primary_key=True),
    Column("display_name", Text, nullable=True),
    Column("job_level", Integer, nullable=False, server_default="1"),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

# Outstanding alerts per employee, newest first by alert_added_at
employee_alerts = Table(
    "employee_alerts",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "employee_ps_id",
        String(64),
        ForeignKey("employees.ps_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("alert_id", String(64), nullable=False),
    Column("alert_name", Text, nullable=False),
    Column("alert_title", Text, nullable=False),
    Column("alert_desc", Text, nullable=True),
    Column("alert_added_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("employee_ps_id", "alert_id", name="unique_employee_alert"),
    Index("idx_employee_alerts_employee", "employee_ps_id", "alert_added_at"),
)
