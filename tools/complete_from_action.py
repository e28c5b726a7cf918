"""
Main MCP tool handler for complete_from_action.

Completes a job from a chosen action onward: the chosen action and every
later pending action are marked completed with one shared timestamp, then
the job itself is marked completed. Strict sequence does not apply.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from db.job_store import JobStore, get_job_store
from models.errors import ToolError, create_internal_error
from schemas.complete_from_action import CompleteFromActionRequest, CompleteFromActionResponse
from schemas.updates import CascadeOutcome, UpdateRecord
from tools.get_job_progress import refresh_progress, require_action, resolve_refresh
from utils.progress_engine import complete_from_action as plan_cascade
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import get_current_utc_timestamp

logger = logging.getLogger(__name__)


class PartialCascadeError(Exception):
    """A store failure interrupted a cascade after some updates were applied."""

    def __init__(self, cause: ToolError, applied: List[UpdateRecord], planned_count: int):
        self.cause = cause
        self.applied = applied
        self.planned_count = planned_count
        super().__init__(cause.message)

    def to_dict(self) -> Dict[str, Any]:
        """Error response carrying how far the cascade got."""
        data = self.cause.to_dict()
        data["partial"] = {
            "applied_count": len(self.applied),
            "planned_count": self.planned_count,
            "applied": [record.model_dump() for record in self.applied],
        }
        return data


def apply_cascade(store: JobStore, outcome: CascadeOutcome) -> List[UpdateRecord]:
    """
    Apply cascade updates in order: action updates first, job update last.

    No rollback and no retry: when a write fails the updates already applied
    stay applied.

    Raises:
        PartialCascadeError: If any write fails
    """
    applied: List[UpdateRecord] = []
    try:
        for update in outcome.action_updates:
            store.update_action(update.action_id, update.payload())
            applied.append(update.to_record())

        store.update_job(outcome.job_update.job_id, outcome.job_update.payload())
        applied.append(outcome.job_update.to_record())

    except ToolError as e:
        logger.error(
            "Cascade for job %s stopped after %d of %d updates: %s",
            outcome.job_update.job_id,
            len(applied),
            outcome.planned_count,
            e.message,
        )
        raise PartialCascadeError(e, applied, outcome.planned_count) from e

    return applied


def complete_from_action(
    args: Dict[str, Any], store: Optional[JobStore] = None
) -> Dict[str, Any]:
    """
    Complete a job from the given action onward.

    Args:
        args: Dictionary containing parameters:
            - job_id (str|int): Job to complete
            - action_id (str|int): Action where the user completed the job
            - dry_run (bool, optional): Plan only, no writes (default: False)
            - refresh (bool, optional): Re-fetch after writing
              (default: JOBFLOW_REFRESH_AFTER_WRITE)
        store: Optional JobStore; the configured store is used when omitted

    Returns:
        Dictionary with structure:
        {
            "job_id": str,
            "action_id": str,
            "completed_at": str,        # shared by every update
            "dry_run": bool,
            "planned_count": int,
            "applied_count": int,       # 0 in dry-run mode
            "updates": [{"target": "action"|"job", "id": str, "payload": {...}}],
            "progress": {...}           # refreshed snapshot, when requested
        }

        When a store write fails part-way, returns the store error plus:
        {
            "error": {...},
            "partial": {
                "applied_count": int,
                "planned_count": int,
                "applied": [...]        # updates that were written
            }
        }
    """
    try:
        request = CompleteFromActionRequest.model_validate(args)
        store = store or get_job_store()

        job = store.fetch_job(request.job_id)
        action = require_action(job, request.action_id)

        now = get_current_utc_timestamp()
        outcome = plan_cascade(action, job.actions, now)

        applied_count = 0
        progress = None
        if not request.dry_run:
            applied_count = len(apply_cascade(store, outcome))
            logger.info(
                "Job %s completed from action %s (%d updates)", job.id, action.id, applied_count
            )
            if resolve_refresh(request.refresh):
                progress = refresh_progress(store, job.id)

        result = CompleteFromActionResponse(
            job_id=job.id,
            action_id=action.id,
            completed_at=now,
            dry_run=request.dry_run,
            planned_count=outcome.planned_count,
            applied_count=applied_count,
            updates=outcome.records(),
            progress=progress,
        ).model_dump()
        if result["progress"] is None:
            del result["progress"]
        return result

    except PartialCascadeError as e:
        return e.to_dict()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        logger.exception("Unexpected error in complete_from_action")
        return create_internal_error(message=str(e), original_error=e).to_dict()
