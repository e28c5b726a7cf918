"""Pydantic schemas for list_jobs tool."""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator

from models.status import JobStatus
from schemas.common import StrictIgnoreRequest, StrictResponse

_ALLOWED_STATUSES = ", ".join(status.value for status in JobStatus)


class ListJobsRequest(StrictIgnoreRequest):
    """Request schema for list_jobs."""

    assigned_to: Optional[str] = None
    status: Optional[str] = None
    scheduled_on: Optional[str] = None

    @field_validator("assigned_to")
    @classmethod
    def validate_assigned_to(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not value.strip():
            raise ValueError("cannot be empty")
        return value.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if value not in {status.value for status in JobStatus}:
            raise ValueError(f"'{value}' is not one of: {_ALLOWED_STATUSES}")
        return value


class JobSummary(StrictResponse):
    """One row of the job list."""

    id: str
    name: str
    status: str
    status_label: str
    strict_sequence: bool
    scheduled_date: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None
    completed_count: int
    total_count: int
    completion_percentage: float


class ListJobsResponse(StrictResponse):
    """Response schema for list_jobs."""

    jobs: list[JobSummary]
    count: int
