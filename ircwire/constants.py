"""
Configuration constants for the ircwire client core

This module contains the tunables used by the connection, dispatcher, event bus
and TLS fallback policy. Each constant can be overridden by setting an
environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Connection timing
IRC_READ_TIMEOUT = _get_env_float(
    "IRC_READ_TIMEOUT", 1.0
)  # Bound on one blocking read; the loop re-checks the stop signal after each
IRC_QUIT_TIMEOUT = _get_env_float(
    "IRC_QUIT_TIMEOUT", 2.0
)  # How long quit() waits for the read loop before force-closing
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 10.0
)  # Dial timeout (TCP + TLS handshake)

# Event bus
EVENT_QUEUE_SIZE = _get_env_int(
    "EVENT_QUEUE_SIZE", 100
)  # Capacity of the bounded event queue; producers block when full

# TLS fallback
TLS_FALLBACK_DELAY = _get_env_float(
    "TLS_FALLBACK_DELAY", 0.5
)  # Pause between quitting the TLS session and dialing plaintext
TLS_FALLBACK_MAX_ATTEMPTS = _get_env_int(
    "TLS_FALLBACK_MAX_ATTEMPTS", 3
)  # Plaintext connect attempts before the fallback gives up
TLS_FALLBACK_MAX_BACKOFF = _get_env_float(
    "TLS_FALLBACK_MAX_BACKOFF", 10.0
)  # Upper bound of the exponential wait between attempts

# Server defaults
DEFAULT_IRC_PORT = 6667
TLS_PORTS = frozenset({6697, 7000, 7001, 9999})

# Mode prefixes that servers put in front of nicknames in NAMES replies
NICK_MODE_PREFIXES = "@+%~&"
