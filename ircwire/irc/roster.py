"""Per-channel user lists built from the event stream."""

from __future__ import annotations

from collections.abc import Iterable

from ..constants import NICK_MODE_PREFIXES
from .handlers import ENDOFNAMES, ERROR, JOIN, NAMES, PART, PRIVMSG, QUIT
from .models import EventMessage


def clean_names(names: Iterable[str]) -> list[str]:
    """Strip mode prefixes (``@+%~&``) and drop empty or repeated names."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for name in names:
        nick = name.lstrip(NICK_MODE_PREFIXES)
        if nick and nick not in seen:
            seen.add(nick)
            cleaned.append(nick)
    return cleaned


class ChannelRoster:
    """Folds consumer-side events into channel membership.

    NAMES replies may arrive split over several messages; they accumulate
    until ENDOFNAMES, which cleans the list in place.
    """

    def __init__(self, own_nick: str = "") -> None:
        self.own_nick = own_nick
        self.channels: dict[str, list[str]] = {}
        self._handlers = {
            NAMES: self._on_names,
            ENDOFNAMES: self._on_endofnames,
            JOIN: self._on_join,
            PART: self._on_part,
            QUIT: self._on_quit,
            PRIVMSG: self._on_privmsg,
            ERROR: self._on_error,
        }

    def users(self, channel: str) -> list[str]:
        return list(self.channels.get(channel, ()))

    def forget(self, channel: str) -> None:
        self.channels.pop(channel, None)

    def apply(self, message: EventMessage) -> bool:
        """Update membership from one event; True if anything changed."""
        handler = self._handlers.get(message.type)
        if handler is None:
            return False
        return handler(message)

    def _add(self, channel: str, nick: str) -> bool:
        users = self.channels.setdefault(channel, [])
        if nick in users:
            return False
        users.append(nick)
        return True

    def _remove(self, channel: str, nick: str) -> bool:
        users = self.channels.get(channel)
        if not users or nick not in users:
            return False
        users.remove(nick)
        return True

    def _on_names(self, message: EventMessage) -> bool:
        self.channels.setdefault(message.get("channel"), []).extend(
            message.get("users").split()
        )
        return False

    def _on_endofnames(self, message: EventMessage) -> bool:
        channel = message.get("channel")
        if channel not in self.channels:
            return False
        self.channels[channel] = clean_names(self.channels[channel])
        return True

    def _on_join(self, message: EventMessage) -> bool:
        nick, channel = message.get("nick"), message.get("channel")
        if nick == self.own_nick:
            self.channels.setdefault(channel, [])
            return True
        return self._add(channel, nick)

    def _on_part(self, message: EventMessage) -> bool:
        nick, channel = message.get("nick"), message.get("channel")
        if nick == self.own_nick:
            changed = channel in self.channels
            self.forget(channel)
            return changed
        return self._remove(channel, nick)

    def _on_quit(self, message: EventMessage) -> bool:
        nick = message.get("nick")
        changed = False
        for channel in self.channels:
            changed = self._remove(channel, nick) or changed
        return changed

    def _on_privmsg(self, message: EventMessage) -> bool:
        target = message.get("target")
        if not target.startswith("#"):
            return False
        return self._add(target, message.get("nick"))

    def _on_error(self, message: EventMessage) -> bool:
        channel = message.get("channel")
        if message.get("remove_channel") != "true" or not channel:
            return False
        changed = channel in self.channels
        self.forget(channel)
        return changed
