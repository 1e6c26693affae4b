"""Standard handler set: turns protocol lines into EventMessages.

Each supported command maps to a small translator returning the events the
line produces. :class:`EventPublisher` registers one handler per command on a
connection and pushes the translated events onto an :class:`EventBus`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..logs.logger import logger
from .connection import IRCConnection
from .event_bus import EventBus
from .models import DISCONNECTED, WILDCARD, Line

Event = tuple[str, dict[str, str]]

# Event types published to consumers
CONNECTED = "CONNECTED"
WELCOME = "WELCOME"
SERVER_INFO = "SERVER_INFO"
MOTD = "MOTD"
PRIVMSG = "PRIVMSG"
JOIN = "JOIN"
PART = "PART"
QUIT = "QUIT"
NAMES = "NAMES"
ENDOFNAMES = "ENDOFNAMES"
LISTSTART = "LISTSTART"
LIST = "LIST"
LISTEND = "LISTEND"
NOTICE = "NOTICE"
ERROR = "ERROR"
TLS_ERROR = "TLS_ERROR"
DEBUG = "DEBUG"
RECONNECTED = "RECONNECTED"

SERVER_INFO_CODES = ("002", "003", "004", "005", "251", "255", "265", "266")
MOTD_CODES = ("375", "372", "376")
GENERIC_ERROR_CODES = ("477", "489", "520")

# Replies meaning the channel or nick does not exist at all
PERMANENT_ERROR_CODES = frozenset({"401", "403"})

CHANNEL_ERROR_TEMPLATES = {
    "401": "No such nick: {}",
    "403": "No such channel: {}",
    "404": "Cannot send to channel: {}",
    "471": "Channel is full: {}",
    "473": "Channel is invite-only: {}",
    "474": "Banned from channel: {}",
    "475": "Bad channel key: {}",
}

NICKNAME_IN_USE = "433"


def _joined(line: Line) -> str:
    return " ".join(line.args)


def _welcome(line: Line) -> list[Event]:
    events: list[Event] = [(CONNECTED, {"message": "Connected to server"})]
    if line.args:
        events.append((WELCOME, {"message": _joined(line)}))
    return events


def _server_info(line: Line) -> list[Event]:
    return [(SERVER_INFO, {"message": _joined(line)})] if line.args else []


def _motd(line: Line) -> list[Event]:
    return [(MOTD, {"message": _joined(line)})] if line.args else []


def _privmsg(line: Line) -> list[Event]:
    if len(line.args) < 2:
        return []
    return [(PRIVMSG, {"nick": line.nick, "target": line.args[0], "message": line.args[1]})]


def _join(line: Line) -> list[Event]:
    return [(JOIN, {"nick": line.nick, "channel": line.args[0]})] if line.args else []


def _part(line: Line) -> list[Event]:
    return [(PART, {"nick": line.nick, "channel": line.args[0]})] if line.args else []


def _quit(line: Line) -> list[Event]:
    data = {"nick": line.nick}
    if line.args:
        data["reason"] = line.args[0]
    return [(QUIT, data)]


def _names(line: Line) -> list[Event]:
    # <me> <type> <channel> :<users>
    if len(line.args) < 4:
        return []
    return [(NAMES, {"channel": line.args[2], "users": line.args[3]})]


def _end_of_names(line: Line) -> list[Event]:
    return [(ENDOFNAMES, {"channel": line.args[1]})] if len(line.args) >= 2 else []


def _list_start(line: Line) -> list[Event]:
    return [(LISTSTART, {"message": "Channel list:"})]


def _list_entry(line: Line) -> list[Event]:
    # <me> <channel> <users> :<topic>
    if len(line.args) < 4:
        return []
    return [(LIST, {"channel": line.args[1], "users": line.args[2], "topic": line.args[3]})]


def _list_end(line: Line) -> list[Event]:
    return [(LISTEND, {"message": "End of channel list"})]


def _notice(line: Line) -> list[Event]:
    if len(line.args) < 2:
        return []
    return [(NOTICE, {"sender": line.nick or line.src, "message": line.args[1]})]


def _server_error(line: Line) -> list[Event]:
    message = _joined(line) or "Unknown error"
    # Best effort: any mention of TLS/SSL is taken as a transport mismatch.
    if "TLS" in message or "SSL" in message:
        return [(TLS_ERROR, {"message": message})]
    return [(ERROR, {"message": message})]


def _channel_error(line: Line) -> list[Event]:
    if len(line.args) < 2:
        return []
    channel = line.args[1]
    if line.command == "415":
        message = " ".join(line.args[1:])
    else:
        message = CHANNEL_ERROR_TEMPLATES[line.command].format(channel)
    data = {"message": message, "channel": channel}
    if line.command in PERMANENT_ERROR_CODES:
        data["remove_channel"] = "true"
    return [(ERROR, data)]


def _nick_in_use(line: Line) -> list[Event]:
    if len(line.args) < 2:
        return []
    return [(ERROR, {"message": f"Nickname already in use: {line.args[1]}"})]


def _not_registered(line: Line) -> list[Event]:
    return [(ERROR, {"message": _joined(line) or "You have not registered"})]


def _generic_error(line: Line) -> list[Event]:
    if len(line.args) < 2:
        return []
    return [(ERROR, {"message": " ".join(line.args[1:])})]


def _disconnected(line: Line) -> list[Event]:
    return [(DISCONNECTED, {"message": "Disconnected from server"})]


TRANSLATORS: dict[str, Callable[[Line], list[Event]]] = {
    "001": _welcome,
    **{code: _server_info for code in SERVER_INFO_CODES},
    **{code: _motd for code in MOTD_CODES},
    "PRIVMSG": _privmsg,
    "JOIN": _join,
    "PART": _part,
    "QUIT": _quit,
    "353": _names,
    "366": _end_of_names,
    "321": _list_start,
    "322": _list_entry,
    "323": _list_end,
    "NOTICE": _notice,
    "ERROR": _server_error,
    **{code: _channel_error for code in (*CHANNEL_ERROR_TEMPLATES, "415")},
    NICKNAME_IN_USE: _nick_in_use,
    "451": _not_registered,
    **{code: _generic_error for code in GENERIC_ERROR_CODES},
    DISCONNECTED: _disconnected,
}


def translate(line: Line) -> list[Event]:
    """Events a line produces; empty for commands the core does not surface."""
    translator = TRANSLATORS.get(line.command)
    if translator is None:
        return []
    return translator(line)


def describe_line(line: Line) -> str:
    return f"RECV CMD={line.command} NICK={line.nick} SRC={line.src} ARGS={line.args}"


class EventPublisher:
    """Registers the standard handlers on a connection.

    Args:
        bus: Destination for translated events.
        verbose: Also publish a DEBUG event for every received and sent line.
    """

    def __init__(self, bus: EventBus, verbose: bool = False) -> None:
        self.bus = bus
        self.verbose = verbose

    def install(self, conn: IRCConnection) -> None:
        for command in TRANSLATORS:
            conn.add_handler(command, self.publish_line)
        conn.add_handler("001", self.mark_registered)
        conn.add_handler(NICKNAME_IN_USE, self.retry_nick)
        if self.verbose:
            conn.add_handler(WILDCARD, self.publish_debug)
            conn.set_debug_send(self.trace_send)

    async def publish_line(self, conn: IRCConnection, line: Line) -> None:
        for event_type, data in translate(line):
            await self.bus.publish(event_type, data)

    async def publish_debug(self, conn: IRCConnection, line: Line) -> None:
        await self.bus.publish(DEBUG, {"message": describe_line(line)})

    def trace_send(self, command: str) -> None:
        # Runs inside the write lock, so it must not wait for queue space.
        self.bus.publish_nowait(DEBUG, {"message": f"SEND {command}"})

    async def mark_registered(self, conn: IRCConnection, line: Line) -> None:
        conn.registered = True
        logger.log_event("irc", "registered", nick=conn.nick)

    async def retry_nick(self, conn: IRCConnection, line: Line) -> None:
        """Pick the next nickname while registration is still pending."""
        if conn.registered:
            return
        rejected = line.arg(1) or conn.nick
        candidate = conn.config.new_nick(rejected)
        logger.log_event(
            "irc", "nick_collision", level=logging.WARNING, nick=rejected, candidate=candidate
        )
        await conn.change_nick(candidate)


def install_handlers(
    conn: IRCConnection, bus: EventBus, verbose: bool = False
) -> EventPublisher:
    publisher = EventPublisher(bus, verbose=verbose)
    publisher.install(conn)
    return publisher
