from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    ConnectionStateError,
    InternalError,
    InvalidOutboundMessage,
    NetworkError,
    ParsingError,
)


def classify_error(error: Exception) -> str:
    """Map an exception onto the category used for aggregation."""
    if isinstance(error, NetworkError | OSError | ConnectionError):
        return "network"
    if isinstance(error, ParsingError):
        return "parsing"
    if isinstance(error, InvalidOutboundMessage):
        return "outbound"
    if isinstance(error, ConnectionStateError):
        return "connection"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: Exception,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    This function formats and logs an error message along with the string
    representation of the exception using structured logging for better
    error tracking and aggregation.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level used for the record.

    Returns:
        None
    """
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
        level=level,
    )
