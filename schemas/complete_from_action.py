"""Pydantic schemas for complete_from_action tool."""

from __future__ import annotations

from typing import Optional

from schemas.common import (
    ActionIdMixin,
    JobIdMixin,
    RefreshMixin,
    StrictIgnoreRequest,
    StrictResponse,
)
from schemas.get_job_progress import JobProgressResponse
from schemas.updates import UpdateRecord


class CompleteFromActionRequest(JobIdMixin, ActionIdMixin, RefreshMixin, StrictIgnoreRequest):
    """Request schema for complete_from_action."""

    dry_run: bool = False


class CompleteFromActionResponse(StrictResponse):
    """Response schema for complete_from_action."""

    job_id: str
    action_id: str
    completed_at: str
    dry_run: bool
    planned_count: int
    applied_count: int
    updates: list[UpdateRecord]
    progress: Optional[JobProgressResponse] = None
