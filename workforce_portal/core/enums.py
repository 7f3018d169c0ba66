"""Enumerations shared by the notification models and services."""

from enum import StrEnum


class NotificationPlacement(StrEnum):
    """Delivery placements a single notification may use at once."""

    PUSH = "Push"
    DASHBOARD = "Dashboard"
    USER_QUEUE = "UserQueue"
    PREREQUISITE = "Prerequisite"


class Priority(StrEnum):
    HIGHEST = "Highest"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# Inbox ordering, most urgent first
PRIORITY_ORDER: tuple[Priority, ...] = (
    Priority.HIGHEST,
    Priority.HIGH,
    Priority.MEDIUM,
    Priority.LOW,
)


class Audience(StrEnum):
    NATIONAL = "National"
    BRANCH = "Branch"
    DIVISION = "Division"
    PROVINCE = "Province"
    INDIVIDUAL = "Individual"


class NotificationType(StrEnum):
    INDIVIDUAL = "Individual"
    GROUP = "Group"
    GLOBAL = "Global"


class NotificationOrigin(StrEnum):
    ALERT = "Alert"
    POLLS = "Polls"
    SYSTEM = "System"


class NotificationStatus(StrEnum):
    PENDING = "Pending"
    FAILED = "Failed"
    SENT = "Sent"


class InteractionType(StrEnum):
    READ = "Read"
    ACKNOWLEDGED = "Acknowledged"
    DISMISSED = "Dismissed"


class AudienceDimension(StrEnum):
    """Targeting dimensions stored in the notification audience index."""

    USER = "user"
    BRANCH = "branch"
    DIVISION = "division"
    PROVINCE = "province"


class JobCategory(StrEnum):
    CLINICAL = "Clinical"
    NON_CLINICAL = "NonClinical"
    ADMIN = "Admin"


class UserLevel(StrEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    CONTROLLED_ADMIN = "CONTROLLED_ADMIN"
    BRANCH_ADMIN = "BRANCH_ADMIN"
    FIELD_STAFF = "FIELD_STAFF"


class ActiveState(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


def base_job_level(access_name: UserLevel) -> int:
    """Lowest numeric job level for an access name (u1 field staff .. u9 super admin)."""
    if access_name == UserLevel.SUPER_ADMIN:
        return 9
    if access_name == UserLevel.ADMIN:
        return 7
    if access_name == UserLevel.CONTROLLED_ADMIN:
        return 6
    if access_name == UserLevel.BRANCH_ADMIN:
        return 2
    return 1
