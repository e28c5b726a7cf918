"""Convert Pydantic validation errors to the ToolError contract."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from models.errors import ToolError, create_validation_error


def _loc_to_field(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc if part != "__root__")


def _clean_pydantic_message(message: str) -> str:
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


def map_pydantic_validation_error(error: ValidationError) -> ToolError:
    """
    Map a request ValidationError to a VALIDATION_ERROR ToolError.

    Only the first issue is reported; a missing field reads as
    ``Missing required field: 'job_id'`` to match hand-written validators.
    """
    issues = error.errors()
    if not issues:
        return create_validation_error("Invalid input")

    first = issues[0]
    field = _loc_to_field(first.get("loc", ()))

    if first.get("type") == "missing" and field:
        return create_validation_error(f"Missing required field: '{field}'")

    message = _clean_pydantic_message(first.get("msg", "Invalid input"))
    if field:
        return create_validation_error(f"Invalid {field}: {message}")
    return create_validation_error(message)
