"""
REST implementation of the JobStore contract for a PostgREST (Supabase) backend.

Tables: ``jobs``, ``job_action_instances``, ``actions`` (action templates)
and ``action_media``. Requests are sent one at a time with no retry; failures
are mapped to STORAGE_ERROR / NOT_FOUND ToolErrors and left to the caller.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from db.job_store import ACTION_UPDATE_FIELDS, JOB_UPDATE_FIELDS, check_update_payload
from models.errors import ToolError, create_not_found_error, create_storage_error
from schemas.job import Action, ActionMedia, Job
from utils.media import group_media_by_action_name

logger = logging.getLogger(__name__)

JOBS_WITH_RELATIONS = "*,job_action_instances(*)"
ACTIONS_ORDER = "sequence_order.asc"


def postgrest_in(values: Sequence[Any]) -> str:
    """
    Build a PostgREST ``in.(...)`` filter value.

    Every value is double-quoted so names containing commas or parentheses
    survive; embedded quotes and backslashes are escaped.

    Examples:
        >>> postgrest_in(["Check oil", "Drain (tank)"])
        'in.("Check oil","Drain (tank)")'
    """
    quoted = []
    for value in values:
        text = str(value).replace("\\", "\\\\").replace('"', '\\"')
        quoted.append(f'"{text}"')
    return f"in.({','.join(quoted)})"


def _has_relation(row: Dict[str, Any]) -> bool:
    return "job_action_instances" in row or "actions" in row


class RestJobStore:
    """
    JobStore backed by a PostgREST endpoint.

    Usage:
        store = RestJobStore("https://project.supabase.co", api_key)
        job = store.fetch_job("8c1f...")
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Project URL; ``/rest/v1`` is appended
            api_key: Project API key, sent as ``apikey``
            timeout: Per-request timeout in seconds
            access_token: User JWT for row-level security; defaults to the API key
            session: Optional pre-configured session (tests inject a mock)
        """
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        table: str,
        params: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send one request and decode the JSON body.

        Raises:
            ToolError: STORAGE_ERROR for network and HTTP failures. Network
                errors, timeouts and 5xx responses are marked retryable.
        """
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise create_storage_error(
                f"{method} {table} failed: {e.__class__.__name__}", retryable=True, original_error=e
            ) from e

        if response.status_code in (401, 403):
            raise create_storage_error(
                f"{method} {table} was rejected ({response.status_code}): not authorized"
            )
        if response.status_code >= 400:
            raise create_storage_error(
                f"{method} {table} returned {response.status_code}: {response.text[:200]}",
                retryable=response.status_code >= 500,
            )

        if not response.content:
            return []
        try:
            return response.json()
        except ValueError as e:
            raise create_storage_error(
                f"{method} {table} returned invalid JSON", original_error=e
            ) from e

    def _get_jobs(self, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        Fetch job rows with embedded actions, falling back to bare rows.

        Embedded relations depend on foreign keys the backend may not expose;
        a failed relational query is retried once without relations.
        """
        params = {
            "select": JOBS_WITH_RELATIONS,
            "job_action_instances.order": ACTIONS_ORDER,
            **filters,
        }
        try:
            return self._request("GET", "jobs", params)
        except ToolError as e:
            logger.warning("Fetching jobs with relations failed (%s); retrying without", e.message)

        return self._request("GET", "jobs", {"select": "*", **filters})

    def fetch_jobs(self, assigned_to: Optional[str] = None) -> List[Job]:
        filters = {}
        if assigned_to is not None:
            filters["assigned_to"] = f"eq.{assigned_to}"

        rows = self._get_jobs(filters)
        jobs = [Job.model_validate(row) for row in rows]

        bare = [job for job, row in zip(jobs, rows) if not _has_relation(row)]
        if bare:
            actions_by_job = self._actions_for_jobs([job.id for job in bare])
            for job in bare:
                job.actions = actions_by_job.get(job.id, [])

        logger.debug("Fetched %d jobs (assigned_to=%s)", len(jobs), assigned_to)
        return jobs

    def _actions_for_jobs(self, job_ids: Sequence[str]) -> Dict[str, List[Action]]:
        """Fetch the actions of several jobs in one request, grouped by job id."""
        rows = self._request(
            "GET",
            "job_action_instances",
            {"select": "*", "job_id": postgrest_in(job_ids), "order": ACTIONS_ORDER},
        )
        grouped: Dict[str, List[Action]] = {}
        for row in rows:
            action = Action.model_validate(row)
            grouped.setdefault(action.job_id, []).append(action)
        return grouped

    def fetch_job(self, job_id: str) -> Job:
        rows = self._get_jobs({"id": f"eq.{job_id}"})
        if not rows:
            raise create_not_found_error("Job", job_id)

        row = rows[0]
        job = Job.model_validate(row)
        if not _has_relation(row):
            job.actions = self.fetch_actions(job.id)
        return job

    def fetch_actions(self, job_id: str) -> List[Action]:
        rows = self._request(
            "GET",
            "job_action_instances",
            {"select": "*", "job_id": f"eq.{job_id}", "order": ACTIONS_ORDER},
        )
        return [Action.model_validate(row) for row in rows]

    def _patch(self, table: str, entity: str, row_id: str, payload: Dict[str, Any]) -> None:
        if not payload:
            return
        rows = self._request(
            "PATCH",
            table,
            {"id": f"eq.{row_id}"},
            json_body=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise create_not_found_error(entity, row_id)
        logger.debug("Updated %s %s: %s", entity.lower(), row_id, sorted(payload))

    def update_action(self, action_id: str, payload: Dict[str, Any]) -> None:
        check_update_payload(payload, ACTION_UPDATE_FIELDS)
        self._patch("job_action_instances", "Action", action_id, payload)

    def update_job(self, job_id: str, payload: Dict[str, Any]) -> None:
        check_update_payload(payload, JOB_UPDATE_FIELDS)
        self._patch("jobs", "Job", job_id, payload)

    def fetch_media_for_actions(
        self, action_names: Sequence[str]
    ) -> Dict[str, List[ActionMedia]]:
        names = list(dict.fromkeys(action_names))
        if not names:
            return {}

        templates = self._request(
            "GET", "actions", {"select": "id,name", "name": postgrest_in(names)}
        )
        if not templates:
            return {}

        names_by_id = {str(row["id"]): row["name"] for row in templates}
        rows = self._request(
            "GET",
            "action_media",
            {"select": "*", "action_id": postgrest_in(list(names_by_id))},
        )
        media = [ActionMedia.model_validate(row) for row in rows]
        return group_media_by_action_name(names_by_id, media)
