"""
Main MCP tool handler for toggle_action.

Flips one action between pending and completed, enforcing strict sequence
on forward moves, and marks the job completed when its last action completes.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from db.job_store import JobStore, get_job_store
from models.errors import ToolError, create_internal_error
from models.status import ActionStatus
from schemas.toggle_action import ToggleActionRequest, ToggleActionResponse
from tools.get_job_progress import refresh_progress, require_action, resolve_refresh
from utils.progress_engine import is_action_completed, toggle_action as plan_toggle
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import get_current_utc_timestamp

logger = logging.getLogger(__name__)


def toggle_action(args: Dict[str, Any], store: Optional[JobStore] = None) -> Dict[str, Any]:
    """
    Toggle an action's completion state.

    Orchestration:
    1. Validate the request and load the job with its actions
    2. Ask the progress engine for the update intents (raises SEQUENCE_LOCKED
       when strict sequence blocks the completion; nothing is written)
    3. Apply the action update, then the job completion update if any
    4. Optionally re-fetch the job and attach its progress snapshot

    Args:
        args: Dictionary containing parameters:
            - job_id (str|int): Job owning the action
            - action_id (str|int): Action to toggle
            - dry_run (bool, optional): Plan only, no writes (default: False)
            - refresh (bool, optional): Re-fetch after writing
              (default: JOBFLOW_REFRESH_AFTER_WRITE)
        store: Optional JobStore; the configured store is used when omitted

    Returns:
        Dictionary with structure:
        {
            "job_id": str,
            "action_id": str,
            "previous_status": str,     # "pending" or "completed"
            "new_status": str,
            "job_completed": bool,      # True when this toggle completed the job
            "dry_run": bool,
            "updates": [{"target": "action"|"job", "id": str, "payload": {...}}],
            "progress": {...}           # refreshed snapshot, when requested
        }

        On error, returns:
        {
            "error": {
                "code": str,            # SEQUENCE_LOCKED, NOT_FOUND, VALIDATION_ERROR, ...
                "message": str,
                "retryable": bool
            }
        }
    """
    try:
        request = ToggleActionRequest.model_validate(args)
        store = store or get_job_store()

        job = store.fetch_job(request.job_id)
        action = require_action(job, request.action_id)

        now = get_current_utc_timestamp()
        outcome = plan_toggle(
            action, job.actions, job.strict_sequence, now, job_status=job.status
        )

        if is_action_completed(action):
            previous_status = ActionStatus.COMPLETED.value
        else:
            previous_status = ActionStatus.PENDING.value
        new_status = outcome.action_update.status.value

        progress = None
        if not request.dry_run:
            store.update_action(outcome.action_update.action_id, outcome.action_update.payload())
            if outcome.job_update is not None:
                store.update_job(outcome.job_update.job_id, outcome.job_update.payload())
                logger.info("Job %s completed by action %s", job.id, action.id)

            if resolve_refresh(request.refresh):
                progress = refresh_progress(store, job.id)

        result = ToggleActionResponse(
            job_id=job.id,
            action_id=action.id,
            previous_status=previous_status,
            new_status=new_status,
            job_completed=outcome.job_update is not None,
            dry_run=request.dry_run,
            updates=outcome.records(),
            progress=progress,
        ).model_dump()
        if result["progress"] is None:
            del result["progress"]
        return result

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        logger.exception("Unexpected error in toggle_action")
        return create_internal_error(message=str(e), original_error=e).to_dict()
