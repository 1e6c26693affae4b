"""IRC subsystem package.

Contains the line codec, dispatcher, connection lifecycle, event bus, the
standard handler set, the TLS fallback policy and the client facade.
"""

from .client import IRCClient  # noqa: F401
from .connection import IRCConnection  # noqa: F401
from .dispatcher import Handler, IRCDispatcher  # noqa: F401
from .event_bus import EventBus  # noqa: F401
from .fallback import TLSFallbackPolicy  # noqa: F401
from .handlers import EventPublisher, install_handlers, translate  # noqa: F401
from .models import ConnectionState, EventMessage, Line  # noqa: F401
from .parser import parse_line  # noqa: F401
from .roster import ChannelRoster, clean_names  # noqa: F401

__all__ = [
    "ChannelRoster",
    "ConnectionState",
    "EventBus",
    "EventMessage",
    "EventPublisher",
    "Handler",
    "IRCClient",
    "IRCConnection",
    "IRCDispatcher",
    "Line",
    "TLSFallbackPolicy",
    "clean_names",
    "install_handlers",
    "parse_line",
    "translate",
]
