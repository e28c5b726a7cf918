"""
Main MCP tool handler for get_job_progress.

Loads one job with its actions and reports derived progress: completion
percentage, derived status, per-action eligibility, and the first pending
action to resume from.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config import get_config
from db.job_store import JobStore, get_job_store
from models.errors import ToolError, create_internal_error, create_not_found_error
from models.status import ActionStatus
from schemas.get_job_progress import (
    ActionProgressItem,
    GetJobProgressRequest,
    JobProgressResponse,
)
from schemas.job import Action, ActionMedia, Job
from utils.media import media_to_dict
from utils.progress_engine import (
    action_eligibility,
    compute_completion_percentage,
    derive_job_status,
    first_incomplete_index,
    is_action_completed,
    sort_actions,
)
from utils.pydantic_error_mapper import map_pydantic_validation_error

logger = logging.getLogger(__name__)


def require_action(job: Job, action_id: str) -> Action:
    """
    Find an action of ``job`` by id.

    Raises:
        ToolError: NOT_FOUND if the job has no such action
    """
    for action in job.actions:
        if action.id == action_id:
            return action
    raise create_not_found_error("Action", action_id)


def resolve_refresh(refresh: Optional[bool]) -> bool:
    """Use the request's refresh flag, or the configured default when unset."""
    if refresh is None:
        return get_config().refresh_after_write
    return refresh


def build_progress_response(
    job: Job, media: Optional[Dict[str, List[ActionMedia]]] = None
) -> JobProgressResponse:
    """Compute the progress snapshot of a loaded job."""
    actions = sort_actions(job.actions)
    eligibility = action_eligibility(actions, job.strict_sequence)
    completed_count = sum(1 for action in actions if is_action_completed(action))

    items = [
        ActionProgressItem(
            id=action.id,
            name=action.name,
            description=action.description,
            sequence_order=action.sequence_order,
            status=action.status or ActionStatus.PENDING.value,
            is_completed=is_action_completed(action),
            can_complete=eligibility[action.id],
            notes=action.notes,
            completed_at=action.completed_at,
        )
        for action in actions
    ]

    media_payload = None
    if media is not None:
        media_payload = {
            name: [media_to_dict(item) for item in entries] for name, entries in media.items()
        }

    return JobProgressResponse(
        job_id=job.id,
        name=job.name,
        status=job.status_enum.value,
        derived_status=derive_job_status(job.status, actions).value,
        strict_sequence=job.strict_sequence,
        scheduled_date=job.scheduled_date,
        completed_at=job.completed_at,
        completed_count=completed_count,
        total_count=len(actions),
        completion_percentage=compute_completion_percentage(actions),
        next_action_index=first_incomplete_index(actions),
        actions=items,
        media=media_payload,
    )


def refresh_progress(store: JobStore, job_id: str) -> Optional[Dict[str, Any]]:
    """
    Re-fetch a job after writes and return its progress snapshot.

    The writes have already been applied at this point, so a failed refetch is
    logged and reported as a missing snapshot rather than as a failed write.
    """
    try:
        job = store.fetch_job(job_id)
    except ToolError as e:
        logger.warning("Refetching job %s after update failed: %s", job_id, e.message)
        return None
    return build_progress_response(job).model_dump()


def get_job_progress(args: Dict[str, Any], store: Optional[JobStore] = None) -> Dict[str, Any]:
    """
    Return the progress snapshot of one job.

    Args:
        args: Dictionary containing parameters:
            - job_id (str|int): Job to load
            - include_media (bool, optional): Attach media grouped by action name
        store: Optional JobStore; the configured store is used when omitted

    Returns:
        Dictionary with structure:
        {
            "job_id": str,
            "name": str,
            "status": str,                 # stored status
            "derived_status": str,         # status implied by action state
            "strict_sequence": bool,
            "completed_count": int,
            "total_count": int,
            "completion_percentage": float,  # 0.0 - 1.0
            "next_action_index": int,      # first pending action, 0 if none
            "actions": [{"id", "name", "sequence_order", "status",
                         "is_completed", "can_complete", "notes", ...}],
            "media": {action_name: [media, ...]}   # only with include_media
        }

        On error, returns:
        {
            "error": {
                "code": str,         # VALIDATION_ERROR, NOT_FOUND, STORAGE_ERROR, DB_ERROR, ...
                "message": str,
                "retryable": bool
            }
        }
    """
    try:
        request = GetJobProgressRequest.model_validate(args)
        store = store or get_job_store()

        job = store.fetch_job(request.job_id)

        media = None
        if request.include_media and job.actions:
            media = store.fetch_media_for_actions([action.name for action in job.actions])

        result = build_progress_response(job, media).model_dump()
        if result["media"] is None:
            del result["media"]
        return result

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        logger.exception("Unexpected error in get_job_progress")
        return create_internal_error(message=str(e), original_error=e).to_dict()
