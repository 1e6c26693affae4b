"""Bounded queue of EventMessages between protocol handlers and a consumer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime

from ..constants import EVENT_QUEUE_SIZE
from ..logs.logger import logger
from .models import EventMessage


class EventBus:
    """FIFO of :class:`EventMessage` with a fixed capacity.

    Producers block in :meth:`publish` while the queue is full; the single
    consumer suspends in :meth:`get` while it is empty. Messages published by
    one coroutine keep their relative order.
    """

    def __init__(self, maxsize: int = EVENT_QUEUE_SIZE) -> None:
        self.maxsize = maxsize
        self._queue: asyncio.Queue[EventMessage] = asyncio.Queue(maxsize=maxsize)

    async def publish(
        self, event_type: str, data: Mapping[str, str] | None = None
    ) -> EventMessage:
        message = EventMessage(type=event_type, data=dict(data or {}), timestamp=datetime.now())
        await self.put(message)
        return message

    def publish_nowait(
        self, event_type: str, data: Mapping[str, str] | None = None
    ) -> EventMessage | None:
        """Enqueue without waiting; the message is dropped if the queue is full."""
        message = EventMessage(type=event_type, data=dict(data or {}), timestamp=datetime.now())
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.log_event(
                "bus", "dropped", level=logging.DEBUG, event_type=event_type, capacity=self.maxsize
            )
            return None
        return message

    async def put(self, message: EventMessage) -> None:
        if self._queue.full():
            logger.log_event(
                "bus",
                "full",
                level=logging.DEBUG,
                event_type=message.type,
                capacity=self.maxsize,
            )
        await self._queue.put(message)

    async def get(self) -> EventMessage:
        return await self._queue.get()

    def get_nowait(self) -> EventMessage:
        """Raises ``asyncio.QueueEmpty`` when nothing is queued."""
        return self._queue.get_nowait()

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    def drain_nowait(self) -> list[EventMessage]:
        """Take everything currently queued without waiting."""
        messages: list[EventMessage] = []
        while not self._queue.empty():
            messages.append(self._queue.get_nowait())
        return messages

    def __aiter__(self) -> EventBus:
        return self

    async def __anext__(self) -> EventMessage:
        return await self.get()
