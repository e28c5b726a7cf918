"""
Ordering and filtering helpers for job lists.

Jobs are shown by scheduled date (earliest first, unscheduled last), then by
creation date, then in the order the store returned them. Dates come from the
store as strings; anything that cannot be parsed sorts as "latest" instead of
raising.
"""

import re
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Tuple

from models.status import JobStatus, parse_job_status
from schemas.job import Job

_LATEST = datetime.max.replace(tzinfo=timezone.utc)

# PostgREST trims trailing zeros from fractional seconds; Python 3.10's
# fromisoformat only takes 3 or 6 digits.
_FRACTION_RE = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def _normalize_fraction(text: str) -> str:
    return _FRACTION_RE.sub(
        lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1
    )


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or date-time string into an aware UTC datetime.

    Naive values are taken as UTC. A trailing ``Z`` is accepted, and
    fractional seconds of any length are cut or padded to microseconds.

    Args:
        value: Raw date string from the store (may be None)

    Returns:
        Aware datetime, or None if the value is missing, unparseable, or
        falls outside the datetime range once converted to UTC

    Examples:
        >>> parse_timestamp("2024-01-01").isoformat()
        '2024-01-01T00:00:00+00:00'
        >>> parse_timestamp("2024-01-01T10:30:00Z").hour
        10
        >>> parse_timestamp("next tuesday") is None
        True
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _normalize_fraction(text)

    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _date_key(value: Optional[str]) -> Tuple[int, datetime]:
    parsed = parse_timestamp(value)
    if parsed is None:
        return (1, _LATEST)
    return (0, parsed)


def job_sort_key(job: Job) -> Tuple[int, datetime, int, datetime]:
    """Sort key: scheduled date first, then creation date; missing values last."""
    return _date_key(job.scheduled_date) + _date_key(job.created_at)


def sort_jobs_for_display(jobs: Iterable[Job]) -> List[Job]:
    """Return jobs in display order. ``sorted`` is stable, so full ties keep input order."""
    return sorted(jobs, key=job_sort_key)


def filter_jobs_by_status(jobs: Iterable[Job], status: Optional[JobStatus]) -> List[Job]:
    """Keep jobs whose status matches ``status``; ``None`` keeps everything."""
    if status is None:
        return list(jobs)
    return [job for job in jobs if parse_job_status(job.status) == status]


def jobs_scheduled_on(jobs: Iterable[Job], day: date) -> List[Job]:
    """
    Return jobs scheduled on ``day`` (UTC), earliest first.

    Jobs without a parseable scheduled date never match.
    """
    matches = []
    for job in jobs:
        scheduled = parse_timestamp(job.scheduled_date)
        if scheduled is not None and scheduled.date() == day:
            matches.append(job)
    return sort_jobs_for_display(matches)
