"""Shared schema primitives for MCP tool request/response models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from utils.validation import normalize_identifier


def validate_identifier_value(value: Any, field_name: str) -> str:
    """Validate a job/action identifier inside a pydantic validator."""
    normalized = normalize_identifier(value)
    if normalized is None:
        raise ValueError(f"{field_name} must be a non-empty string or non-negative integer")
    return normalized


class StrictIgnoreRequest(BaseModel):
    """Request base with strict typing and ignored unknown fields."""

    model_config = ConfigDict(extra="ignore", strict=True)


class StrictResponse(BaseModel):
    """Response/result base with strict typing and forbidden unknown fields."""

    model_config = ConfigDict(extra="forbid")


class JobIdMixin(BaseModel):
    """Reusable job_id field; accepts string or integer ids."""

    job_id: str

    @field_validator("job_id", mode="before")
    @classmethod
    def validate_job_id(cls, value: Any) -> str:
        return validate_identifier_value(value, "job_id")


class ActionIdMixin(BaseModel):
    """Reusable action_id field; accepts string or integer ids."""

    action_id: str

    @field_validator("action_id", mode="before")
    @classmethod
    def validate_action_id(cls, value: Any) -> str:
        return validate_identifier_value(value, "action_id")


class RefreshMixin(BaseModel):
    """Reusable write-then-refetch switch; None means 'use the configured default'."""

    refresh: Optional[bool] = None
