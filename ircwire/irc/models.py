"""Shared IRC data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from types import MappingProxyType

WILDCARD = "*"
DISCONNECTED = "DISCONNECTED"


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    DISCONNECTING = auto()


@dataclass(slots=True)
class Line:
    """One parsed wire message.

    ``src`` is the raw prefix (``nick!user@host``), ``command`` the uppercased
    command or numeric, ``args`` the parameters with any trailing parameter
    last. A line that yields no command has an empty ``command``.
    """

    command: str = ""
    args: list[str] = field(default_factory=list)
    src: str = ""
    raw: str = ""

    @property
    def nick(self) -> str:
        if "!" not in self.src:
            return ""
        return self.src.split("!", 1)[0]

    def arg(self, index: int, default: str = "") -> str:
        return self.args[index] if len(self.args) > index else default


@dataclass(frozen=True, slots=True)
class EventMessage:
    """Typed, timestamped message crossing the core/consumer boundary."""

    type: str
    data: Mapping[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        # Freeze the payload; the caller's dict may be reused.
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def get(self, key: str, default: str = "") -> str:
        return self.data.get(key, default)

    @property
    def clock(self) -> str:
        """Timestamp rendered as ``HH:MM``."""
        return self.timestamp.strftime("%H:%M")
