from __future__ import annotations

import logging
import ssl

from ..logging_config import log_structured_error
from .internal import (
    ConnectError,
    FallbackError,
    IRCError,
    NetworkError,
    NotConnectedError,
    StateError,
)


def categorize_error(error: BaseException) -> str:
    """Map an exception onto the error category used in structured logs."""
    if isinstance(error, ssl.SSLError | ConnectError):
        return "connect"
    if isinstance(error, NetworkError | OSError | ConnectionError):
        return "network"
    if isinstance(error, NotConnectedError | StateError):
        return "state"
    if isinstance(error, FallbackError):
        return "fallback"
    if isinstance(error, IRCError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict[str, object] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    This function formats and logs an error message along with the string
    representation of the exception using structured logging for better
    error tracking.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level (default: ERROR).
    """
    log_structured_error(
        error_type=categorize_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=context,
        level=level,
    )


def wrap_transport_error(error: BaseException, operation: str) -> NetworkError:
    """Wrap a raw transport exception into a ``NetworkError``.

    Args:
        error: The exception raised by the socket or stream layer.
        operation: Short description of what was being attempted.

    Returns:
        A NetworkError carrying the operation and original error type.
    """
    return NetworkError(
        f"{operation} failed: {error}",
        data={"operation": operation, "error_type": type(error).__name__},
    )
