"""Update intents produced by the progress engine.

Updates are partial: only fields that were explicitly set take part in the
store payload. Passing ``None`` explicitly means "clear this column", while
leaving a field out means "leave it unchanged".
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from models.status import ActionStatus, JobStatus
from schemas.common import StrictResponse


class UpdateRecord(StrictResponse):
    """A planned or applied store update, as reported in tool responses."""

    target: Literal["action", "job"]
    id: str
    payload: Dict[str, Any]


class ActionUpdate(StrictResponse):
    """Partial update for a single action instance."""

    action_id: str
    status: Optional[ActionStatus] = None
    notes: Optional[str] = None
    completed_at: Optional[str] = None

    def payload(self) -> Dict[str, Any]:
        """Return only the explicitly set fields, ready for ``JobStore.update_action``."""
        return self.model_dump(mode="json", exclude_unset=True, exclude={"action_id"})

    def to_record(self) -> UpdateRecord:
        return UpdateRecord(target="action", id=self.action_id, payload=self.payload())


class JobUpdate(StrictResponse):
    """Partial update for a job."""

    job_id: str
    status: Optional[JobStatus] = None
    completed_at: Optional[str] = None

    def payload(self) -> Dict[str, Any]:
        """Return only the explicitly set fields, ready for ``JobStore.update_job``."""
        return self.model_dump(mode="json", exclude_unset=True, exclude={"job_id"})

    def to_record(self) -> UpdateRecord:
        return UpdateRecord(target="job", id=self.job_id, payload=self.payload())


class ToggleOutcome(StrictResponse):
    """Result of toggling one action: its update plus an optional job completion."""

    action_update: ActionUpdate
    job_update: Optional[JobUpdate] = None

    def records(self) -> list[UpdateRecord]:
        records = [self.action_update.to_record()]
        if self.job_update is not None:
            records.append(self.job_update.to_record())
        return records


class CascadeOutcome(StrictResponse):
    """Result of completing a job from a given action onward."""

    action_updates: list[ActionUpdate]
    job_update: JobUpdate

    @property
    def planned_count(self) -> int:
        return len(self.action_updates) + 1

    def records(self) -> list[UpdateRecord]:
        return [update.to_record() for update in self.action_updates] + [
            self.job_update.to_record()
        ]
