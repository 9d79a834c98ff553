"""MCP tool definitions."""

import logging
from datetime import datetime, timezone
from typing import Any

from saison_backup.exceptions import DecodeError, InterchangeError, SchemaVersionUnsupportedError
from saison_backup.models.backup import DataType

__all__ = ["create_error_response", "error_response_for", "parse_data_types"]

logger = logging.getLogger(__name__)


def create_error_response(
    message: str,
    error_type: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create standardized error response for MCP tools.

    Args:
        message: User-friendly error message
        error_type: Error type name (e.g., ValidationError, NotFoundError)
        details: Optional additional details

    Returns:
        Structured error response dictionary
    """
    response = {
        "error": True,
        "message": message,
        "error_type": error_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        response["details"] = details
    return response


def error_response_for(error: Exception, operation: str) -> dict[str, Any]:
    """Convert any failure of an operation into an error response.

    Args:
        error: The exception raised by the operation
        operation: Tool name, used in logs and messages

    Returns:
        Structured error response dictionary
    """
    if isinstance(error, InterchangeError):
        logger.warning(f"{operation} failed: {error.message}")
        details: dict[str, Any] = {"kind": error.kind.value}
        if isinstance(error, DecodeError):
            details["reason"] = error.reason
            if error.file_name:
                details["file_name"] = error.file_name
        if isinstance(error, SchemaVersionUnsupportedError):
            details["version"] = error.version
            details["supported"] = error.supported
        return create_error_response(
            message=error.message,
            error_type=type(error).__name__,
            details=details,
        )
    if isinstance(error, ValueError):
        logger.warning(f"{operation} validation failed: {error}")
        return create_error_response(message=str(error), error_type="ValidationError")
    if isinstance(error, OSError):
        logger.error(f"{operation} I/O error: {error}", exc_info=True)
        return create_error_response(
            message=f"{operation} failed due to I/O error: {error}",
            error_type="IOError",
        )
    logger.exception(f"Unexpected error in {operation}: {error}")
    return create_error_response(
        message=f"{operation} failed: {error}",
        error_type="InternalError",
    )


def parse_data_types(values: list[str] | None) -> list[DataType] | None:
    """Parse data type display keys.

    Raises:
        ValueError: If a value is not a known data type
    """
    if values is None:
        return None
    known = ", ".join(dt.value for dt in DataType)
    parsed = []
    for value in values:
        try:
            parsed.append(DataType(value.strip().lower()))
        except ValueError as e:
            raise ValueError(f"Unknown data type '{value}' (expected one of: {known})") from e
    return parsed
