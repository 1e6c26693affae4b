"""IRC line parsing and outbound command builders."""

from __future__ import annotations

from .models import Line

CRLF = "\r\n"


def parse_line(raw_line: str) -> Line:
    """Parse one wire line into a :class:`Line`.

    Never raises: a line that cannot yield a command comes back with an empty
    ``command`` so only wildcard handlers observe it.
    """
    line = Line(raw=raw_line)
    rest = raw_line

    if rest.startswith(":"):
        # A prefix with nothing after it cannot carry a command.
        prefix, sep, rest = rest[1:].partition(" ")
        if not sep:
            return line
        line.src = prefix

    command, _, rest = rest.partition(" ")
    line.command = command.upper()

    while rest:
        if rest.startswith(":"):
            line.args.append(rest[1:])
            break
        param, _, rest = rest.partition(" ")
        if param:
            line.args.append(param)

    return line


def encode_line(command: str) -> bytes:
    """Frame one outbound command for the wire."""
    return f"{command}{CRLF}".encode("utf-8")


def build_nick(nick: str) -> str:
    return f"NICK {nick}"


def build_user(user: str, realname: str) -> str:
    return f"USER {user} 0 * :{realname}"


def build_join(channel: str) -> str:
    return f"JOIN {channel}"


def build_part(channel: str) -> str:
    return f"PART {channel}"


def build_privmsg(target: str, message: str) -> str:
    return f"PRIVMSG {target} :{message}"


def build_quit(reason: str = "") -> str:
    return f"QUIT :{reason}" if reason else "QUIT"


def build_pong(token: str | None = None) -> str:
    return f"PONG :{token}" if token is not None else "PONG"
