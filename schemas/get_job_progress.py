"""Pydantic schemas for get_job_progress tool."""

from __future__ import annotations

from typing import Any, Optional

from schemas.common import JobIdMixin, StrictIgnoreRequest, StrictResponse


class GetJobProgressRequest(JobIdMixin, StrictIgnoreRequest):
    """Request schema for get_job_progress."""

    include_media: bool = False


class ActionProgressItem(StrictResponse):
    """One action with its eligibility, in sequence order."""

    id: str
    name: str
    description: Optional[str] = None
    sequence_order: int
    status: str
    is_completed: bool
    can_complete: bool
    notes: Optional[str] = None
    completed_at: Optional[str] = None


class JobProgressResponse(StrictResponse):
    """Progress snapshot of one job."""

    job_id: str
    name: str
    status: str
    derived_status: str
    strict_sequence: bool
    scheduled_date: Optional[str] = None
    completed_at: Optional[str] = None
    completed_count: int
    total_count: int
    completion_percentage: float
    next_action_index: int
    actions: list[ActionProgressItem]
    media: Optional[dict[str, list[dict[str, Any]]]] = None
