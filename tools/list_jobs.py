"""
Main MCP tool handler for list_jobs.

Lists jobs in display order (scheduled date, then creation date), with
optional status and calendar-day filters and per-job completion counts.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from config import get_config
from db.job_store import JobStore, get_job_store
from models.errors import ToolError, create_internal_error
from models.status import JobStatus
from schemas.job import Job
from schemas.list_jobs import JobSummary, ListJobsRequest, ListJobsResponse
from utils.job_ordering import filter_jobs_by_status, jobs_scheduled_on, sort_jobs_for_display
from utils.progress_engine import compute_completion_percentage, is_action_completed
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import parse_iso_date

logger = logging.getLogger(__name__)


def summarize_job(job: Job) -> JobSummary:
    """Build the list row for one job."""
    status = job.status_enum
    return JobSummary(
        id=job.id,
        name=job.name,
        status=status.value,
        status_label=status.display_name,
        strict_sequence=job.strict_sequence,
        scheduled_date=job.scheduled_date,
        created_at=job.created_at,
        completed_at=job.completed_at,
        completed_count=sum(1 for action in job.actions if is_action_completed(action)),
        total_count=len(job.actions),
        completion_percentage=compute_completion_percentage(job.actions),
    )


def list_jobs(args: Dict[str, Any], store: Optional[JobStore] = None) -> Dict[str, Any]:
    """
    List jobs for display.

    Args:
        args: Dictionary containing optional parameters:
            - assigned_to (str): Assignee filter (default: JOBFLOW_USER_ID, if set)
            - status (str): One of ready, in_progress, completed, cancelled
            - scheduled_on (str): YYYY-MM-DD; only jobs scheduled that day (UTC)
        store: Optional JobStore; the configured store is used when omitted

    Returns:
        Dictionary with structure:
        {
            "jobs": [{"id", "name", "status", "status_label", "strict_sequence",
                      "scheduled_date", "created_at", "completed_at",
                      "completed_count", "total_count", "completion_percentage"}],
            "count": int
        }

        On error, returns the standard {"error": {...}} structure.
    """
    try:
        request = ListJobsRequest.model_validate(args)
        scheduled_on = parse_iso_date(request.scheduled_on, "scheduled_on")
        assigned_to = request.assigned_to or get_config().user_id
        store = store or get_job_store()

        jobs = store.fetch_jobs(assigned_to=assigned_to)

        if request.status is not None:
            jobs = filter_jobs_by_status(jobs, JobStatus(request.status))

        if scheduled_on is not None:
            jobs = jobs_scheduled_on(jobs, scheduled_on)
        else:
            jobs = sort_jobs_for_display(jobs)

        summaries = [summarize_job(job) for job in jobs]
        logger.debug("Listing %d jobs", len(summaries))
        return ListJobsResponse(jobs=summaries, count=len(summaries)).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        logger.exception("Unexpected error in list_jobs")
        return create_internal_error(message=str(e), original_error=e).to_dict()
