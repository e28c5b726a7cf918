"""Pydantic records for jobs, their action instances, and action media.

Records accept raw store rows (SQLite rows or REST JSON): extra columns are
ignored, identifiers are normalised to strings, and empty strings on optional
text fields become None.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from models.status import ActionStatus, JobStatus, parse_job_status

_OPTIONAL_TEXT_FIELDS = (
    "description",
    "notes",
    "completed_at",
    "created_at",
    "scheduled_date",
    "assigned_to",
    "template_id",
)


class StoreRecord(BaseModel):
    """Base for records read from a JobStore."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def empty_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: (None if k in _OPTIONAL_TEXT_FIELDS and v == "" else v)
                for k, v in data.items()
            }
        return data


def _id_to_str(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


class Action(StoreRecord):
    """One step of a job (a row of ``job_action_instances``)."""

    id: str
    job_id: str
    name: str = ""
    description: Optional[str] = None
    sequence_order: int = 0
    status: Optional[str] = ActionStatus.PENDING.value
    notes: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("id", "job_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Any:
        return _id_to_str(value)


class Job(StoreRecord):
    """A unit of work made of ordered actions."""

    id: str
    name: str = ""
    status: Optional[str] = JobStatus.READY.value
    strict_sequence: bool = False
    assigned_to: Optional[str] = None
    template_id: Optional[str] = None
    scheduled_date: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    actions: list[Action] = Field(
        default_factory=list,
        validation_alias=AliasChoices("actions", "job_action_instances"),
    )

    @field_validator("id", "assigned_to", "template_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Any:
        return _id_to_str(value)

    @field_validator("strict_sequence", mode="before")
    @classmethod
    def coerce_strict_sequence(cls, value: Any) -> Any:
        """SQLite stores booleans as 0/1 and NULL means 'not strict'."""
        if value is None:
            return False
        if isinstance(value, int) and not isinstance(value, bool):
            return bool(value)
        return value

    @field_validator("actions", mode="before")
    @classmethod
    def coerce_missing_actions(cls, value: Any) -> Any:
        if value is None:
            return []
        return value

    @property
    def status_enum(self) -> JobStatus:
        return parse_job_status(self.status)


class ActionMedia(StoreRecord):
    """A media descriptor attached to an action template."""

    id: str
    action_id: str
    media_url: str
    media_type: str = ""
    created_at: Optional[str] = None

    @field_validator("id", "action_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Any:
        return _id_to_str(value)
