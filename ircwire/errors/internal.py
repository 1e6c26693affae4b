"""Centralized internal error hierarchy.

These exceptions give the connection core semantic failure categories. Raw
``OSError`` / ``ssl.SSLError`` instances from the transport are wrapped before
they reach callers of the outbound API.

Classes:
  IRCError           – Base for all internal errors.
  NetworkError       – Dial or transport failure.
  ConnectError       – Dial failure raised by ``connect()``.
  NotConnectedError  – A write attempted while the connection is down.
  StateError         – A lifecycle call made in the wrong state.
  FallbackError      – The plaintext fallback ran out of attempts.
"""

from __future__ import annotations

from collections.abc import Mapping


class IRCError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(IRCError):
    """Exception raised for network or transport layer errors.

    Covers resets, broken pipes and TLS failures on an established socket as
    well as failed dials.
    """


class ConnectError(NetworkError):
    """Exception raised when dialing the configured server fails."""


class NotConnectedError(IRCError):
    """Exception raised when a command is issued while disconnected.

    No I/O is performed when this is raised.
    """

    def __init__(self, message: str = "not connected") -> None:
        super().__init__(message)


class StateError(IRCError):
    """Exception raised when a lifecycle operation is invalid in the current state."""


class FallbackError(IRCError):
    """Exception raised when the plaintext fallback exhausts its attempts.

    Args:
        message: Descriptive error message.
        attempts: Number of connect attempts made.
    """

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message, data={"attempts": attempts})
        self.attempts = attempts


__all__ = [
    "IRCError",
    "NetworkError",
    "ConnectError",
    "NotConnectedError",
    "StateError",
    "FallbackError",
]
