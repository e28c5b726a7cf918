"""
Input validation and timestamp utilities shared by tools and stores.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional

from models.errors import create_validation_error


def normalize_identifier(value: Any) -> Optional[str]:
    """
    Normalize an opaque job/action identifier to a string.

    Accepts non-empty strings (stripped) and non-negative integers. Booleans
    are rejected even though ``bool`` is a subclass of ``int``.

    Returns:
        The identifier as a string, or None if it is not a valid identifier
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value) if value >= 0 else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_iso_date(value: Optional[str], field_name: str) -> Optional[date]:
    """
    Parse a ``YYYY-MM-DD`` request parameter.

    Raises:
        ToolError: If the value is present but not a calendar date
    """
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise create_validation_error(
            f"Invalid {field_name}: expected YYYY-MM-DD, got {value!r}"
        ) from e


def get_current_utc_timestamp() -> str:
    """
    Generate a UTC timestamp in ISO 8601 format with millisecond precision.

    Returns a timestamp string in the format: YYYY-MM-DDTHH:MM:SS.mmmZ
    Example: 2026-02-04T03:47:36.966Z

    Every update produced by one user operation shares a single timestamp.
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
