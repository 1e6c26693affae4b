"""Client facade: the event stream in, the command API out."""

from __future__ import annotations

import asyncio

from ..config import IRCConfig
from ..errors import ConnectError, FallbackError
from .connection import IRCConnection
from .event_bus import EventBus
from .fallback import TLSFallbackPolicy
from .handlers import ERROR, RECONNECTED, TLS_ERROR, install_handlers
from .models import EventMessage


class IRCClient:
    """Owns the current connection, its event bus and the TLS fallback.

    Consumers read events with :meth:`next_event` (or ``async for``) and send
    commands through ``join/part/privmsg/raw/quit``. A ``TLS_ERROR`` drained
    while the connection uses TLS schedules the fallback in the background;
    the rebuilt connection replaces the current one transparently.
    """

    def __init__(
        self,
        config: IRCConfig,
        *,
        verbose: bool = False,
        bus: EventBus | None = None,
        fallback: TLSFallbackPolicy | None = None,
    ) -> None:
        self.bus = bus or EventBus()
        self.verbose = verbose
        self.fallback = fallback or TLSFallbackPolicy()
        self.connection = IRCConnection(config)
        self.publisher = install_handlers(self.connection, self.bus, verbose=verbose)
        self._fallback_task: asyncio.Task[None] | None = None

    @property
    def config(self) -> IRCConfig:
        return self.connection.config

    @property
    def connected(self) -> bool:
        return self.connection.connected

    @property
    def nick(self) -> str:
        return self.connection.nick

    async def connect(self) -> None:
        """Connect the current connection; failures are also published as ERROR."""
        try:
            await self.connection.connect()
        except ConnectError as e:
            await self.bus.publish(ERROR, {"message": str(e)})
            raise

    async def join(self, channel: str) -> None:
        await self.connection.join(channel)

    async def part(self, channel: str) -> None:
        await self.connection.part(channel)

    async def privmsg(self, target: str, message: str) -> None:
        await self.connection.privmsg(target, message)

    async def raw(self, command: str) -> None:
        await self.connection.raw(command)

    async def quit(self, reason: str = "") -> None:
        await self.connection.quit(reason)

    async def next_event(self) -> EventMessage:
        message = await self.bus.get()
        if message.type == TLS_ERROR:
            self._schedule_fallback()
        return message

    def __aiter__(self) -> IRCClient:
        return self

    async def __anext__(self) -> EventMessage:
        return await self.next_event()

    @property
    def fallback_pending(self) -> bool:
        return self._fallback_task is not None and not self._fallback_task.done()

    def _schedule_fallback(self) -> None:
        if not self.fallback.applies_to(self.connection) or self.fallback_pending:
            return
        self._fallback_task = asyncio.create_task(self._run_fallback())

    async def _run_fallback(self) -> None:
        try:
            self.connection = await self.fallback.fallback(self.connection)
        except FallbackError as e:
            await self.bus.publish(ERROR, {"message": str(e)})
            return
        await self.bus.publish(RECONNECTED, {"message": "Reconnected without TLS"})

    async def wait_fallback(self) -> None:
        if self._fallback_task is not None:
            await self._fallback_task

    async def aclose(self, reason: str = "") -> None:
        """Quit, stop any fallback in progress and wait for handler tasks."""
        task = self._fallback_task
        if task is not None and not task.done():
            task.cancel()
            # The policy quits the half-built connection on its way out.
            await asyncio.wait({task}, timeout=self.connection.quit_timeout)
        conn = self.connection
        await conn.quit(reason)
        if not await conn.dispatcher.join(timeout=conn.quit_timeout):
            conn.dispatcher.cancel_pending()
            await conn.dispatcher.join(timeout=conn.quit_timeout)
