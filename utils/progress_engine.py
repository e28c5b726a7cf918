"""
Job progress engine: sequencing and completion rules for one job's actions.

The engine is pure. Every function works on the actions passed in and returns
values or update intents (``schemas.updates``); none of them read from or
write to a store. Callers apply the returned intents through a ``JobStore``.

Rules:
- Actions are ordered by ``sequence_order`` ascending; ties keep the order in
  which they were fetched.
- Under strict sequence an action may move pending -> completed only when
  every action with a strictly lower ``sequence_order`` is completed.
  Reverting (completed -> pending) is never gated.
- When every action is completed the job itself is marked completed.
- "Complete from here" forces the chosen action and all later pending actions
  to completed, bypassing the strict-sequence gate.
- Job completion is sticky: reverting an action never reopens the job.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from models.errors import SequenceLockedError
from models.status import ActionStatus, JobStatus, parse_job_status
from schemas.job import Action
from schemas.updates import ActionUpdate, CascadeOutcome, JobUpdate, ToggleOutcome

COMPLETED_HERE_NOTE = (
    "Job completed in this step by the user, all other Actions are autocompleted and marked"
)
CASCADE_NOTE_TEMPLATE = "Completed in Action: {action_name}"


def is_action_completed(action: Action) -> bool:
    """Return True only for the exact ``completed`` status."""
    return action.status == ActionStatus.COMPLETED.value


def sort_actions(actions: Iterable[Action]) -> List[Action]:
    """Sort actions by sequence order; ``sorted`` is stable so ties keep fetch order."""
    return sorted(actions, key=lambda action: action.sequence_order)


def compute_completion_percentage(actions: Sequence[Action]) -> float:
    """
    Fraction of completed actions, in [0, 1].

    Args:
        actions: All actions of a job

    Returns:
        0.0 for an empty list, otherwise completed / total
    """
    if not actions:
        return 0.0
    completed = sum(1 for action in actions if is_action_completed(action))
    return completed / len(actions)


def is_job_complete(actions: Sequence[Action]) -> bool:
    """A job is complete when it has actions and all of them are completed."""
    return bool(actions) and all(is_action_completed(action) for action in actions)


def blocking_actions(action: Action, all_actions: Iterable[Action]) -> List[Action]:
    """Return the pending actions ordered strictly before ``action``."""
    return [
        other
        for other in sort_actions(all_actions)
        if other.sequence_order < action.sequence_order and not is_action_completed(other)
    ]


def can_complete(action: Action, all_actions: Iterable[Action], strict_sequence: bool) -> bool:
    """
    Check whether ``action`` may be toggled.

    Already-completed actions are always allowed so that they can be reverted.
    Without strict sequence every action is allowed. Under strict sequence a
    pending action is allowed only when no earlier action is still pending.

    Args:
        action: The action the user wants to toggle
        all_actions: Every action of the job (including ``action``)
        strict_sequence: The job's strict-sequence flag

    Returns:
        True if the toggle is allowed

    Examples:
        >>> first = Action(id="1", job_id="j", sequence_order=1)
        >>> second = Action(id="2", job_id="j", sequence_order=2)
        >>> can_complete(second, [first, second], strict_sequence=True)
        False
        >>> can_complete(second, [first, second], strict_sequence=False)
        True
    """
    if is_action_completed(action):
        return True
    if not strict_sequence:
        return True
    return not blocking_actions(action, all_actions)


def action_eligibility(actions: Sequence[Action], strict_sequence: bool) -> Dict[str, bool]:
    """Map each action id to its ``can_complete`` answer."""
    return {action.id: can_complete(action, actions, strict_sequence) for action in actions}


def derive_job_status(current_status: Optional[str], actions: Sequence[Action]) -> JobStatus:
    """
    Derive the job status from its actions.

    ``completed`` and ``cancelled`` are kept as-is. Otherwise the job is
    completed when all actions are, in progress when some are, else ready.
    """
    current = parse_job_status(current_status)
    if current in (JobStatus.COMPLETED, JobStatus.CANCELLED):
        return current
    if is_job_complete(actions):
        return JobStatus.COMPLETED
    if any(is_action_completed(action) for action in actions):
        return JobStatus.IN_PROGRESS
    return JobStatus.READY


def first_incomplete_index(actions: Sequence[Action]) -> int:
    """Index (in sequence order) of the first pending action, or 0 if none."""
    for index, action in enumerate(sort_actions(actions)):
        if not is_action_completed(action):
            return index
    return 0


def toggle_action(
    action: Action,
    all_actions: Sequence[Action],
    strict_sequence: bool,
    now: str,
    job_status: Optional[str] = None,
) -> ToggleOutcome:
    """
    Flip one action between pending and completed.

    Args:
        action: The action to toggle
        all_actions: Every action of the job, in any order
        strict_sequence: The job's strict-sequence flag
        now: ISO 8601 timestamp recorded as ``completed_at``
        job_status: Current job status, if known. When the job is already
            completed no redundant job update is emitted.

    Returns:
        ToggleOutcome with the action update and, when the toggle leaves
        every action completed, a job completion update

    Raises:
        SequenceLockedError: If completing the action is blocked by strict
            sequence. No update is produced.
    """
    completing = not is_action_completed(action)

    if completing and not can_complete(action, all_actions, strict_sequence):
        blockers = blocking_actions(action, all_actions)
        raise SequenceLockedError(action.id, [blocker.id for blocker in blockers])

    if completing:
        action_update = ActionUpdate(
            action_id=action.id, status=ActionStatus.COMPLETED, completed_at=now
        )
    else:
        action_update = ActionUpdate(
            action_id=action.id, status=ActionStatus.PENDING, completed_at=None
        )

    target_status = action_update.status.value
    after_toggle = [
        other.model_copy(update={"status": target_status}) if other.id == action.id else other
        for other in all_actions
    ]

    job_update = None
    already_completed = (
        job_status is not None and parse_job_status(job_status) == JobStatus.COMPLETED
    )
    if is_job_complete(after_toggle) and not already_completed:
        job_update = JobUpdate(job_id=action.job_id, status=JobStatus.COMPLETED, completed_at=now)

    return ToggleOutcome(action_update=action_update, job_update=job_update)


def complete_from_action(
    action: Action, all_actions: Sequence[Action], now: str
) -> CascadeOutcome:
    """
    Complete the job from ``action`` onward.

    This is an explicit override: it ignores strict sequence and never fails.
    The chosen action is annotated as the step where the job was completed;
    every later pending action is annotated with the chosen action's name.
    Actions that are already completed are left untouched. All updates share
    ``now``.

    Args:
        action: The action where the user completed the job
        all_actions: Every action of the job, in any order
        now: ISO 8601 timestamp shared by every update

    Returns:
        CascadeOutcome with the action updates (chosen action first, then the
        later actions in sequence order) and the job completion update
    """
    updates = [
        ActionUpdate(
            action_id=action.id,
            status=ActionStatus.COMPLETED,
            completed_at=now,
            notes=COMPLETED_HERE_NOTE,
        )
    ]

    cascade_note = CASCADE_NOTE_TEMPLATE.format(action_name=action.name)
    for other in sort_actions(all_actions):
        if other.sequence_order <= action.sequence_order or is_action_completed(other):
            continue
        updates.append(
            ActionUpdate(
                action_id=other.id,
                status=ActionStatus.COMPLETED,
                completed_at=now,
                notes=cascade_note,
            )
        )

    job_update = JobUpdate(job_id=action.job_id, status=JobStatus.COMPLETED, completed_at=now)
    return CascadeOutcome(action_updates=updates, job_update=job_update)


def update_notes(action: Action, new_notes: Optional[str]) -> ActionUpdate:
    """Build a notes update; blank notes are stored as no notes at all."""
    if new_notes is None or not new_notes.strip():
        return ActionUpdate(action_id=action.id, notes=None)
    return ActionUpdate(action_id=action.id, notes=new_notes)
