#!/usr/bin/env python3
"""
MCP Server entry point for JobFlow.

This server exposes job checklist tools over the Model Context Protocol:
listing jobs, reading a job's progress, toggling actions under the
strict-sequence rules, completing a job from a given action, and editing
action notes.

Usage:
    python server.py

The server runs in stdio mode by default, which is the standard transport
for MCP servers that are invoked by LLM agents.
"""

import logging

from mcp.server.fastmcp import FastMCP

from config import get_config
from tools.complete_from_action import complete_from_action
from tools.get_job_progress import get_job_progress
from tools.list_jobs import list_jobs
from tools.toggle_action import toggle_action
from tools.update_action_notes import update_action_notes

# Create FastMCP server instance
config = get_config()
mcp = FastMCP(
    name=config.server_name,
    instructions=(
        "This server provides tools for JobFlow job checklists. "
        "A job is an ordered list of actions; each action is pending or completed."
        "\n\n"
        "READ TOOLS:\n"
        "Use list_jobs to list jobs in display order (scheduled date first, unscheduled last), "
        "optionally filtered by status or calendar day. "
        "Use get_job_progress to read one job's actions, completion percentage, and which "
        "actions can be completed now."
        "\n\n"
        "WRITE TOOLS:\n"
        "Use toggle_action to mark one action completed or back to pending. Jobs with strict "
        "sequence reject completing an action while an earlier one is pending (SEQUENCE_LOCKED). "
        "Completing the last pending action also marks the job completed. "
        "Use complete_from_action to finish a job at a given step: that action and all later "
        "pending actions are completed and annotated, and the job is marked completed. "
        "Use update_action_notes to replace an action's notes (blank clears them)."
    ),
)


@mcp.tool(
    name="list_jobs",
    description=(
        "List jobs sorted by scheduled date (unscheduled last), then creation date. "
        "Optional filters: assigned_to, status (ready, in_progress, completed, cancelled), "
        "scheduled_on (YYYY-MM-DD). Each job includes completed/total action counts."
    ),
)
def list_jobs_tool(
    assigned_to: str | None = None,
    status: str | None = None,
    scheduled_on: str | None = None,
) -> dict:
    """
    List jobs for display.

    Args:
        assigned_to: Assignee filter (default: JOBFLOW_USER_ID when configured).
        status: Only jobs with this status.
        scheduled_on: Only jobs scheduled on this UTC day (YYYY-MM-DD).

    Returns:
        {"jobs": [...], "count": int} or {"error": {"code", "message", "retryable"}}
    """
    args = {}
    if assigned_to is not None:
        args["assigned_to"] = assigned_to
    if status is not None:
        args["status"] = status
    if scheduled_on is not None:
        args["scheduled_on"] = scheduled_on

    return list_jobs(args)


@mcp.tool(
    name="get_job_progress",
    description=(
        "Read one job with its actions in sequence order, completion percentage, derived "
        "status, per-action can_complete flags, and the index of the first pending action. "
        "Set include_media to attach media grouped by action name."
    ),
)
def get_job_progress_tool(job_id: str, include_media: bool | None = None) -> dict:
    """
    Read a job's progress snapshot.

    Args:
        job_id: Job identifier.
        include_media: Attach action media (default: false).

    Returns:
        Progress snapshot or {"error": {...}}
    """
    args = {"job_id": job_id}
    if include_media is not None:
        args["include_media"] = include_media

    return get_job_progress(args)


@mcp.tool(
    name="toggle_action",
    description=(
        "Toggle one action between pending and completed. Under strict sequence, completing "
        "an action whose earlier actions are pending fails with SEQUENCE_LOCKED and writes "
        "nothing. Reverting is always allowed. Completing the last pending action also marks "
        "the job completed. Supports dry_run."
    ),
)
def toggle_action_tool(
    job_id: str,
    action_id: str,
    dry_run: bool | None = None,
    refresh: bool | None = None,
) -> dict:
    """
    Toggle an action's completion state.

    Args:
        job_id: Job identifier.
        action_id: Action identifier within the job.
        dry_run: Return planned updates without writing (default: false).
        refresh: Re-fetch the job after writing (default: JOBFLOW_REFRESH_AFTER_WRITE).

    Returns:
        Toggle result with applied updates, or {"error": {...}}
    """
    args = {"job_id": job_id, "action_id": action_id}
    if dry_run is not None:
        args["dry_run"] = dry_run
    if refresh is not None:
        args["refresh"] = refresh

    return toggle_action(args)


@mcp.tool(
    name="complete_from_action",
    description=(
        "Complete a job at the given action: that action and every later pending action are "
        "marked completed with one timestamp and annotated, then the job is marked completed. "
        "Ignores strict sequence. Updates are applied one by one without rollback; on failure "
        "the response reports how many were applied. Supports dry_run."
    ),
)
def complete_from_action_tool(
    job_id: str,
    action_id: str,
    dry_run: bool | None = None,
    refresh: bool | None = None,
) -> dict:
    """
    Complete a job from the given action onward.

    Args:
        job_id: Job identifier.
        action_id: Action where the job is completed.
        dry_run: Return planned updates without writing (default: false).
        refresh: Re-fetch the job after writing (default: JOBFLOW_REFRESH_AFTER_WRITE).

    Returns:
        Cascade result, or {"error": {...}, "partial": {...}} when interrupted
    """
    args = {"job_id": job_id, "action_id": action_id}
    if dry_run is not None:
        args["dry_run"] = dry_run
    if refresh is not None:
        args["refresh"] = refresh

    return complete_from_action(args)


@mcp.tool(
    name="update_action_notes",
    description=(
        "Replace the notes of one action. Blank or missing notes clear the stored notes. "
        "Does not change completion state."
    ),
)
def update_action_notes_tool(job_id: str, action_id: str, notes: str | None = None) -> dict:
    """
    Replace an action's notes.

    Args:
        job_id: Job identifier.
        action_id: Action identifier within the job.
        notes: New notes text.

    Returns:
        Notes update result or {"error": {...}}
    """
    args = {"job_id": job_id, "action_id": action_id}
    if notes is not None:
        args["notes"] = notes

    return update_action_notes(args)


def main():
    """
    Main entry point for the MCP server.

    Configures logging, reports configuration warnings, and starts the server
    on the stdio transport.
    """
    config.setup_logging()

    logger = logging.getLogger(__name__)
    logger.info("Starting JobFlow MCP Server")
    logger.info(f"Server name: {config.server_name}")

    for warning in config.validate():
        logger.warning(warning)

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
