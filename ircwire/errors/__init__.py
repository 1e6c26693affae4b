"""Error hierarchy and error logging helpers."""

from .handling import categorize_error, log_error, wrap_transport_error  # noqa: F401
from .internal import (  # noqa: F401
    ConnectError,
    FallbackError,
    IRCError,
    NetworkError,
    NotConnectedError,
    StateError,
)

__all__ = [
    "IRCError",
    "NetworkError",
    "ConnectError",
    "NotConnectedError",
    "StateError",
    "FallbackError",
    "categorize_error",
    "log_error",
    "wrap_transport_error",
]
