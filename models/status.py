"""
Centralized, type-safe status definitions for JobFlow.

This module is the single source of truth for all status values used across
the application. It defines two distinct Enum classes:

- ``JobStatus``: Lowercase statuses stored on the ``jobs`` table.
- ``ActionStatus``: Lowercase statuses stored on ``job_action_instances``.

Both Enums inherit from ``(str, Enum)`` so that members are directly
comparable to plain strings and serialize naturally to JSON at the store
and tool boundaries.
"""

from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    """Enum for statuses used in the 'jobs' table.

    ``completed`` is sticky: once written it is never reverted by action
    changes. ``cancelled`` is only ever set outside this service.
    """

    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def display_name(self) -> str:
        return _JOB_STATUS_LABELS[self]


_JOB_STATUS_LABELS = {
    JobStatus.READY: "Ready",
    JobStatus.IN_PROGRESS: "In Progress",
    JobStatus.COMPLETED: "Completed",
    JobStatus.CANCELLED: "Cancelled",
}


class ActionStatus(str, Enum):
    """Enum for statuses used in the 'job_action_instances' table.

    The wire value is a free string. Only ``completed`` counts as complete;
    anything else (including NULL) is treated as pending.
    """

    PENDING = "pending"
    COMPLETED = "completed"


def parse_job_status(value: Optional[str]) -> JobStatus:
    """Map a raw job status string to ``JobStatus``, defaulting to READY."""
    try:
        return JobStatus(value)
    except ValueError:
        return JobStatus.READY
