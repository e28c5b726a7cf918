"""
Tests for record normalization, update payloads, request schemas and the
pydantic error mapper.
"""

import pytest
from pydantic import ValidationError

from models.status import ActionStatus, JobStatus
from schemas.job import Action, Job
from schemas.list_jobs import ListJobsRequest
from schemas.toggle_action import ToggleActionRequest
from schemas.updates import ActionUpdate, CascadeOutcome, JobUpdate
from utils.pydantic_error_mapper import map_pydantic_validation_error


class TestStoreRecords:
    """Normalization of raw store rows."""

    def test_extra_columns_ignored(self):
        action = Action.model_validate(
            {"id": 1, "job_id": 2, "name": "A", "sequence_order": 1, "legacy_col": "x"}
        )
        assert action.id == "1"
        assert action.job_id == "2"

    def test_empty_strings_become_none(self):
        action = Action.model_validate(
            {"id": "1", "job_id": "2", "notes": "", "completed_at": ""}
        )
        assert action.notes is None
        assert action.completed_at is None

    def test_relation_alias(self):
        job = Job.model_validate(
            {"id": "j", "job_action_instances": [{"id": "a", "job_id": "j", "sequence_order": 1}]}
        )
        assert [a.id for a in job.actions] == ["a"]

    def test_null_relation_and_strict_flag(self):
        job = Job.model_validate({"id": 3, "job_action_instances": None, "strict_sequence": None})
        assert job.actions == []
        assert job.strict_sequence is False

    def test_integer_strict_flag(self):
        assert Job.model_validate({"id": "j", "strict_sequence": 1}).strict_sequence is True

    def test_status_enum_defaults_to_ready(self):
        assert Job(id="j", status="mystery").status_enum == JobStatus.READY
        assert Job(id="j", status="cancelled").status_enum == JobStatus.CANCELLED


class TestUpdatePayloads:
    """Absent means unchanged; explicit None means clear."""

    def test_only_set_fields(self):
        update = ActionUpdate(action_id="1", notes="hi")
        assert update.payload() == {"notes": "hi"}

    def test_explicit_none_kept(self):
        update = ActionUpdate(action_id="1", status=ActionStatus.PENDING, completed_at=None)
        assert update.payload() == {"status": "pending", "completed_at": None}

    def test_job_update_record(self):
        record = JobUpdate(job_id="j", status=JobStatus.COMPLETED, completed_at="t").to_record()
        assert record.model_dump() == {
            "target": "job",
            "id": "j",
            "payload": {"status": "completed", "completed_at": "t"},
        }

    def test_cascade_planned_count(self):
        outcome = CascadeOutcome(
            action_updates=[ActionUpdate(action_id="1"), ActionUpdate(action_id="2")],
            job_update=JobUpdate(job_id="j"),
        )
        assert outcome.planned_count == 3
        assert [r.target for r in outcome.records()] == ["action", "action", "job"]


class TestRequests:
    """Tool request schemas."""

    def test_toggle_defaults(self):
        request = ToggleActionRequest.model_validate({"job_id": 4, "action_id": " a-1 "})
        assert request.job_id == "4"
        assert request.action_id == "a-1"
        assert request.dry_run is False
        assert request.refresh is None

    def test_unknown_fields_ignored(self):
        request = ToggleActionRequest.model_validate({"job_id": "1", "action_id": "2", "extra": 1})
        assert not hasattr(request, "extra")

    def test_dry_run_strict_bool(self):
        with pytest.raises(ValidationError):
            ToggleActionRequest.model_validate({"job_id": "1", "action_id": "2", "dry_run": "true"})

    def test_list_jobs_assigned_to_stripped(self):
        assert ListJobsRequest.model_validate({"assigned_to": " u1 "}).assigned_to == "u1"

    def test_list_jobs_status_values(self):
        with pytest.raises(ValidationError):
            ListJobsRequest.model_validate({"status": "READY"})


class TestPydanticErrorMapper:
    """Validation errors mapped to ToolErrors."""

    def test_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            ToggleActionRequest.model_validate({"action_id": "1"})

        error = map_pydantic_validation_error(exc_info.value)

        assert error.code.value == "VALIDATION_ERROR"
        assert error.message == "Missing required field: 'job_id'"

    def test_value_error_prefix_stripped(self):
        with pytest.raises(ValidationError) as exc_info:
            ToggleActionRequest.model_validate({"job_id": True, "action_id": "1"})

        error = map_pydantic_validation_error(exc_info.value)

        assert error.message == (
            "Invalid job_id: job_id must be a non-empty string or non-negative integer"
        )

    def test_type_error(self):
        with pytest.raises(ValidationError) as exc_info:
            ListJobsRequest.model_validate({"scheduled_on": 20240101})

        error = map_pydantic_validation_error(exc_info.value)

        assert error.message.startswith("Invalid scheduled_on: ")
