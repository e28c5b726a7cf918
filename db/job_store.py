"""
Storage contract for jobs and their action instances.

The progress engine never talks to storage; tool handlers load a job through
a ``JobStore``, ask the engine for update intents, and apply them here.

Partial updates: keys absent from a payload are left unchanged, keys present
with ``None`` clear the stored value. Stores do not batch, retry, or roll back;
each update call stands on its own.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from config import STORE_REST, STORE_SQLITE, Config, get_config
from models.errors import create_validation_error
from schemas.job import Action, ActionMedia, Job

ACTION_UPDATE_FIELDS = ("status", "notes", "completed_at")
JOB_UPDATE_FIELDS = ("status", "completed_at")


class JobStore(Protocol):
    """Protocol for job storage backends."""

    def fetch_jobs(self, assigned_to: Optional[str] = None) -> List[Job]:
        """Return jobs (with actions when available), optionally for one assignee."""

    def fetch_job(self, job_id: str) -> Job:
        """Return one job with its actions. Raises a NOT_FOUND ToolError if absent."""

    def fetch_actions(self, job_id: str) -> List[Action]:
        """Return the job's actions ordered by sequence order."""

    def update_action(self, action_id: str, payload: Dict[str, Any]) -> None:
        """Apply a partial update to one action instance."""

    def update_job(self, job_id: str, payload: Dict[str, Any]) -> None:
        """Apply a partial update to one job."""

    def fetch_media_for_actions(
        self, action_names: Sequence[str]
    ) -> Dict[str, List[ActionMedia]]:
        """Return media grouped by action name; names without media are absent."""


def check_update_payload(payload: Dict[str, Any], allowed: Sequence[str]) -> Dict[str, Any]:
    """
    Reject payload keys a store is not allowed to write.

    Raises:
        ToolError: VALIDATION_ERROR on unknown keys
    """
    unknown = sorted(set(payload) - set(allowed))
    if unknown:
        raise create_validation_error(
            f"Unsupported update fields: {', '.join(unknown)}. "
            f"Allowed: {', '.join(allowed)}"
        )
    return payload


def get_job_store(config: Optional[Config] = None) -> JobStore:
    """
    Build the configured store.

    Tool handlers accept an injected store and only call this when none is
    given.
    """
    config = config or get_config()

    if config.store_backend == STORE_SQLITE:
        from db.sqlite_store import SqliteJobStore

        return SqliteJobStore(config.get_db_path_str())

    if config.store_backend == STORE_REST:
        from db.rest_store import RestJobStore

        if not config.rest_url or not config.rest_key:
            raise create_validation_error(
                "REST store requires JOBFLOW_REST_URL and JOBFLOW_REST_KEY"
            )
        return RestJobStore(config.rest_url, config.rest_key, timeout=config.rest_timeout)

    raise create_validation_error(f"Unknown store backend: {config.store_backend}")
