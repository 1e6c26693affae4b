"""Event-tag handler registry and fan-out dispatch."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from ..errors import IRCError
from ..logs.logger import logger
from .models import WILDCARD, Line
from .parser import build_pong

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection

Handler: TypeAlias = Callable[["IRCConnection", Line], Awaitable[None] | None]


class IRCDispatcher:
    """Handler registry owned by exactly one connection.

    Every dispatched line fans out to the handlers registered for its command
    plus the wildcard bucket. Each invocation is its own task; there is no
    ordering among them. Tasks are tracked so a connection can wait for or
    cancel the work it spawned.
    """

    def __init__(self, connection: IRCConnection):
        self.connection = connection
        self._handlers: dict[str, list[Handler]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def add_handler(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def handlers_for(self, event: str) -> list[Handler]:
        return list(self._handlers.get(event, ()))

    def snapshot(self) -> dict[str, list[Handler]]:
        """Copy of the full registry, used when a connection is rebuilt."""
        return {event: list(handlers) for event, handlers in self._handlers.items()}

    def replace(self, registry: dict[str, list[Handler]]) -> None:
        self._handlers = {event: list(handlers) for event, handlers in registry.items()}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def dispatch(self, line: Line) -> None:
        if line.command == "PING":
            await self._reply_pong(line)

        handlers = self.handlers_for(line.command)
        handlers.extend(self.handlers_for(WILDCARD))
        if not handlers:
            return
        logger.log_event(
            "irc",
            "dispatch",
            level=logging.DEBUG,
            nick=self.connection.nick,
            command=line.command or "<empty>",
            handlers=len(handlers),
        )
        for handler in handlers:
            self._spawn(handler, line)

    async def _reply_pong(self, line: Line) -> None:
        token = line.args[0] if line.args else None
        try:
            await self.connection.send_line(build_pong(token))
        except IRCError as e:
            logger.log_event(
                "irc",
                "pong_failed",
                level=logging.WARNING,
                nick=self.connection.nick,
                error=str(e),
            )

    def _spawn(self, handler: Handler, line: Line) -> None:
        task = asyncio.create_task(self._invoke(handler, line))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _invoke(self, handler: Handler, line: Line) -> None:
        try:
            result: Any = handler(self.connection, line)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "irc",
                "handler_error",
                level=logging.ERROR,
                nick=self.connection.nick,
                command=line.command,
                handler=getattr(handler, "__name__", repr(handler)),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def join(self, timeout: float | None = None) -> bool:
        """Wait until no handler task is outstanding.

        Tasks spawned while waiting are picked up as well.

        Returns:
            False if the timeout expired first.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._tasks:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return False
            await asyncio.wait(set(self._tasks), timeout=remaining)
        return True

    def cancel_pending(self) -> int:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        return len(tasks)
