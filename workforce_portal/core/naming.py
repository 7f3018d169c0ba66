"""Identifier and push topic naming helpers."""

from uuid import uuid4

from workforce_portal.core.enums import JobCategory


def generate_notification_id() -> str:
    """Generate a globally unique notification id."""
    return prefix_notification_id(uuid4().hex)


def prefix_notification_id(identifier: str) -> str:
    return f"notification_{identifier}"


def prefix_topic_name_for_branch(branch_id: str, unique_id: str | None = None) -> str:
    parts = ["topic", branch_id]
    if unique_id:
        parts.append(unique_id)
    return "_".join(parts)


def prefix_topic_name_for_user(ps_id: str) -> str:
    return f"topic_emp{ps_id}"


def branch_topic_name(
    branch_id: str,
    job_level: int,
    job_category: JobCategory | None = None,
) -> str:
    """
    Compose the topic name for a branch audience at a job level.

    Clinical and non-clinical audiences have their own topics; without a
    category the flat job level topic is used.
    """
    if job_category == JobCategory.CLINICAL:
        return prefix_topic_name_for_branch(branch_id, f"u_clinical_{job_level}")
    if job_category == JobCategory.NON_CLINICAL:
        return prefix_topic_name_for_branch(branch_id, f"u_non_clinical_{job_level}")
    return prefix_topic_name_for_branch(branch_id, f"u{job_level}")
