"""Pydantic schemas for toggle_action tool."""

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


class ToggleActionRequest(JobIdMixin, ActionIdMixin, RefreshMixin, StrictIgnoreRequest):
    """Request schema for toggle_action."""

    dry_run: bool = False


class ToggleActionResponse(StrictResponse):
    """Response schema for toggle_action."""

    job_id: str
    action_id: str
    previous_status: str
    new_status: str
    job_completed: bool
    dry_run: bool
    updates: list[UpdateRecord]
    progress: Optional[JobProgressResponse] = None
