"""Database models."""

from workforce_portal.models.base import metadata
from workforce_portal.models.employees import employee_alerts, employees
from workforce_portal.models.locations import branches
from workforce_portal.models.notifications import (
    notification_audiences,
    notification_interactions,
    notifications,
    push_notification_logs,
)
from workforce_portal.models.prerequisites import prerequisites
from workforce_portal.models.push_tokens import push_tokens

__all__ = [
    "branches",
    "employee_alerts",
    "employees",
    "metadata",
    "notification_audiences",
    "notification_interactions",
    "notifications",
    "prerequisites",
    "push_notification_logs",
    "push_tokens",
]
