"""Structured event logger for the IRC core."""

from __future__ import annotations

import logging
import os
import sys

import colorlog

DEBUG_VALUES = ("true", "1", "yes")
PREFIX_WIDTH = 20
EVENT_WIDTH = 28


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() in DEBUG_VALUES


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(levelname)-8s%(reset)s %(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            no_color=not sys.stderr.isatty(),
        )
    )
    return handler


def render_prefix(nick: str | None, channel: str | None) -> str:
    """``[nick #channel]`` padded to a fixed column; ``core`` when neither is known."""
    label = " ".join(part for part in (nick or "core", channel) if part)
    return f"[{label.ljust(PREFIX_WIDTH)[:PREFIX_WIDTH]}]"


def render_event_name(event_name: str) -> str:
    if len(event_name) > EVENT_WIDTH:
        return event_name[: EVENT_WIDTH - 1] + "~"
    return event_name.ljust(EVENT_WIDTH)


class IRCLogger:
    """Event-oriented logger.

    ``log_event("irc", "connect_start", server=...)`` renders the human text
    from the event template catalog and prefixes it with the nick/channel the
    event concerns. In DEBUG mode the remaining keyword context is appended.
    """

    def __init__(self, name: str = "ircwire") -> None:
        self.logger = logging.getLogger(name)
        self.logger.handlers.clear()
        self.logger.addHandler(_console_handler())
        self.logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
        # Root handlers installed by LoggerConfigurator would print twice
        self.logger.propagate = False

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        text = human if human is not None else self._render(domain, action, kwargs)
        nick = kwargs.pop("nick", None)
        channel = kwargs.pop("channel", None)
        prefix = render_prefix(
            nick if isinstance(nick, str) else None,
            channel if isinstance(channel, str) else None,
        )
        message = f"{prefix} {text}"
        if debug_enabled():
            message = f"{render_event_name(f'{domain}_{action}'.lower())} {message}"
            if kwargs:
                context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
                message = f"{message} ({context})"
        self.logger.log(level, message, exc_info=exc_info)

    @staticmethod
    def _render(domain: str, action: str, context: dict[str, object]) -> str:
        # Imported late: the catalog module may be reloaded at runtime.
        from . import event_catalog

        template = event_catalog.EVENT_TEMPLATES.get((domain, action))
        if template is None:
            return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
        try:
            return template.format(**context)
        except (KeyError, IndexError, ValueError):
            return template


logger = IRCLogger()
