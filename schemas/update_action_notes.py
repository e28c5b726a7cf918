"""Pydantic schemas for update_action_notes tool."""

from __future__ import annotations

from typing import Optional

from schemas.common import ActionIdMixin, JobIdMixin, StrictIgnoreRequest, StrictResponse
from schemas.updates import UpdateRecord


class UpdateActionNotesRequest(JobIdMixin, ActionIdMixin, StrictIgnoreRequest):
    """Request schema for update_action_notes."""

    notes: Optional[str] = None


class UpdateActionNotesResponse(StrictResponse):
    """Response schema for update_action_notes."""

    job_id: str
    action_id: str
    notes: Optional[str] = None
    update: UpdateRecord
