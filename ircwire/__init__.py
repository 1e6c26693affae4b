"""ircwire: a small asyncio IRC client core."""

from .config import IRCConfig  # noqa: F401
from .irc import (  # noqa: F401
    EventBus,
    EventMessage,
    IRCClient,
    IRCConnection,
    Line,
    parse_line,
)

__version__ = "0.1.0"

__all__ = [
    "EventBus",
    "EventMessage",
    "IRCClient",
    "IRCConfig",
    "IRCConnection",
    "Line",
    "parse_line",
]
