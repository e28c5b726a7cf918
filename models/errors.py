"""
Error model for JobFlow tools, stores, and the progress engine.

Provides structured error codes and sanitized error messages.
"""

import os
import re
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Structured error codes returned by the MCP tools."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SEQUENCE_LOCKED = "SEQUENCE_LOCKED"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"
    DB_NOT_FOUND = "DB_NOT_FOUND"
    DB_ERROR = "DB_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


SEQUENCE_LOCKED_MESSAGE = "Please complete previous actions first (strict sequence mode)"


class ToolError(Exception):
    """Base exception for tool errors with structured error information."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        retryable: bool = False,
        original_error: Optional[Exception] = None
    ):
        """
        Initialize a tool error.

        Args:
            code: The error code
            message: Human-readable error message
            retryable: Whether the operation can be retried
            original_error: The original exception if this wraps another error
        """
        self.code = code
        self.message = message
        self.retryable = retryable
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary format for MCP response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "retryable": self.retryable
            }
        }


class SequenceLockedError(ToolError):
    """Raised when an action is completed out of order under strict sequence."""

    def __init__(self, action_id: str, blocking_action_ids: Optional[list] = None):
        self.action_id = action_id
        self.blocking_action_ids = list(blocking_action_ids or [])
        super().__init__(
            code=ErrorCode.SEQUENCE_LOCKED,
            message=SEQUENCE_LOCKED_MESSAGE,
            retryable=False,
        )

    def to_dict(self) -> dict:
        """Include the pending actions that block the completion."""
        data = super().to_dict()
        data["error"]["blocking_action_ids"] = self.blocking_action_ids
        return data


def sanitize_path(path: str) -> str:
    """
    Sanitize file paths to avoid exposing sensitive system details.

    Returns only the basename for absolute paths, keeps relative paths.
    """
    if os.path.isabs(path):
        return os.path.basename(path)
    return path


def sanitize_sql_error(error_msg: str) -> str:
    """
    Sanitize SQL error messages to remove statements and absolute paths.

    Args:
        error_msg: The original error message

    Returns:
        Sanitized error message
    """
    sanitized = re.sub(r'SQL:.*', '', error_msg, flags=re.IGNORECASE)
    sanitized = re.sub(
        r'\b(SELECT|INSERT|UPDATE|DELETE)\b.*', '[SQL query]', sanitized, flags=re.IGNORECASE
    )
    sanitized = re.sub(r'/[^\s]+/', '[path]/', sanitized)
    return sanitized.strip()


def sanitize_credentials(error_msg: str) -> str:
    """
    Remove API keys and bearer tokens from storage error messages.

    REST backends echo request URLs and headers in some failures; keys must
    never reach a tool response.

    Args:
        error_msg: The original error message

    Returns:
        Error message with credentials masked
    """
    sanitized = re.sub(r'(apikey=)[^&\s]+', r'\1***', error_msg, flags=re.IGNORECASE)
    sanitized = re.sub(r'(Bearer\s+)[A-Za-z0-9._\-]+', r'\1***', sanitized)
    sanitized = re.sub(r'eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+', '***', sanitized)
    return sanitized


def sanitize_stack_trace(error_msg: str) -> str:
    """Keep only the first line of a multi-line error message."""
    lines = error_msg.split('\n')
    if lines:
        return lines[0].strip()
    return error_msg


def create_validation_error(message: str) -> ToolError:
    """
    Create a validation error.

    Args:
        message: Description of the validation failure

    Returns:
        ToolError with VALIDATION_ERROR code
    """
    return ToolError(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        retryable=False
    )


def create_not_found_error(entity: str, entity_id) -> ToolError:
    """
    Create a not-found error for a job or action lookup.

    Args:
        entity: Entity label ("Job", "Action")
        entity_id: The identifier that was not found

    Returns:
        ToolError with NOT_FOUND code
    """
    return ToolError(
        code=ErrorCode.NOT_FOUND,
        message=f"{entity} not found: {entity_id}",
        retryable=False
    )


def create_storage_error(
    message: str, retryable: bool = False, original_error: Optional[Exception] = None
) -> ToolError:
    """
    Create a remote storage error (network, auth, HTTP failure).

    Args:
        message: Description of the storage failure
        retryable: Whether the operation can be retried
        original_error: The original exception

    Returns:
        ToolError with STORAGE_ERROR code
    """
    sanitized_message = sanitize_stack_trace(sanitize_credentials(message))

    return ToolError(
        code=ErrorCode.STORAGE_ERROR,
        message=f"Storage error: {sanitized_message}",
        retryable=retryable,
        original_error=original_error
    )


def create_db_not_found_error(db_path: str) -> ToolError:
    """
    Create a database not found error.

    Args:
        db_path: The database path that was not found

    Returns:
        ToolError with DB_NOT_FOUND code
    """
    sanitized_path = sanitize_path(db_path)
    return ToolError(
        code=ErrorCode.DB_NOT_FOUND,
        message=f"Database not found: {sanitized_path}",
        retryable=False
    )


def create_db_error(
    message: str, retryable: bool = False, original_error: Optional[Exception] = None
) -> ToolError:
    """
    Create a database error.

    Args:
        message: Description of the database error
        retryable: Whether the operation can be retried
        original_error: The original exception

    Returns:
        ToolError with DB_ERROR code
    """
    sanitized_message = sanitize_sql_error(message)
    sanitized_message = sanitize_stack_trace(sanitized_message)

    return ToolError(
        code=ErrorCode.DB_ERROR,
        message=f"Database error: {sanitized_message}",
        retryable=retryable,
        original_error=original_error
    )


def create_internal_error(message: str, original_error: Optional[Exception] = None) -> ToolError:
    """
    Create an internal error for unexpected exceptions.

    Args:
        message: Description of the internal error
        original_error: The original exception

    Returns:
        ToolError with INTERNAL_ERROR code
    """
    sanitized_message = sanitize_stack_trace(message)

    return ToolError(
        code=ErrorCode.INTERNAL_ERROR,
        message=f"Internal error: {sanitized_message}",
        retryable=True,
        original_error=original_error
    )
