"""
Main MCP tool handler for update_action_notes.

Notes are independent of completion state. Blank notes clear the stored value.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from db.job_store import JobStore, get_job_store
from models.errors import ToolError, create_internal_error, create_not_found_error
from schemas.update_action_notes import UpdateActionNotesRequest, UpdateActionNotesResponse
from utils.progress_engine import update_notes
from utils.pydantic_error_mapper import map_pydantic_validation_error

logger = logging.getLogger(__name__)


def update_action_notes(
    args: Dict[str, Any], store: Optional[JobStore] = None
) -> Dict[str, Any]:
    """
    Replace the notes of one action.

    Args:
        args: Dictionary containing parameters:
            - job_id (str|int): Job owning the action
            - action_id (str|int): Action to annotate
            - notes (str, optional): New notes; missing or blank clears them
        store: Optional JobStore; the configured store is used when omitted

    Returns:
        Dictionary with structure:
        {
            "job_id": str,
            "action_id": str,
            "notes": str | None,
            "update": {"target": "action", "id": str, "payload": {"notes": ...}}
        }

        On error, returns the standard {"error": {...}} structure.
    """
    try:
        request = UpdateActionNotesRequest.model_validate(args)
        store = store or get_job_store()

        actions = store.fetch_actions(request.job_id)
        action = next((a for a in actions if a.id == request.action_id), None)
        if action is None:
            raise create_not_found_error("Action", request.action_id)

        update = update_notes(action, request.notes)
        store.update_action(update.action_id, update.payload())

        return UpdateActionNotesResponse(
            job_id=request.job_id,
            action_id=action.id,
            notes=update.notes,
            update=update.to_record(),
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        logger.exception("Unexpected error in update_action_notes")
        return create_internal_error(message=str(e), original_error=e).to_dict()
