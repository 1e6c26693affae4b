"""
In-process IRC peers for connection tests
"""

from __future__ import annotations

import asyncio


class FakeIRCServer:
    """Loopback TCP server recording every line clients send.

    It never closes a client on its own; tests call ``disconnect_clients``
    to simulate the peer hanging up.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.writers: list[asyncio.StreamWriter] = []
        self.server: asyncio.base_events.Server | None = None
        self.port = 0
        self.client_connected = asyncio.Event()
        self._changed = asyncio.Condition()

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    async def start(self) -> FakeIRCServer:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.writers.append(writer)
        self.client_connected.set()
        while True:
            try:
                data = await reader.readline()
            except (ConnectionError, OSError):
                break
            if not data:
                break
            async with self._changed:
                self.lines.append(data.decode("utf-8"))
                self._changed.notify_all()

    async def wait_for_lines(self, count: int, timeout: float = 2.0) -> list[str]:
        async def _wait() -> None:
            async with self._changed:
                await self._changed.wait_for(lambda: len(self.lines) >= count)

        await asyncio.wait_for(_wait(), timeout=timeout)
        return list(self.lines)

    async def send(self, text: str) -> None:
        for writer in self.writers:
            writer.write(f"{text}\r\n".encode("utf-8"))
            await writer.drain()

    async def disconnect_clients(self) -> None:
        for writer in self.writers:
            writer.close()
        self.writers.clear()

    async def stop(self) -> None:
        await self.disconnect_clients()
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()


class StalledPeer:
    """Accepts connections and then never reads or writes a byte."""

    def __init__(self) -> None:
        self.writers: list[asyncio.StreamWriter] = []
        self.server: asyncio.base_events.Server | None = None
        self.port = 0
        self._release = asyncio.Event()

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    async def start(self) -> StalledPeer:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.writers.append(writer)
        await self._release.wait()

    async def stop(self) -> None:
        self._release.set()
        for writer in self.writers:
            writer.transport.abort()
        self.writers.clear()
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()


class FakeTransport:
    def __init__(self) -> None:
        self.aborted = False

    def abort(self) -> None:
        self.aborted = True


class FakeWriter:
    """Stands in for ``asyncio.StreamWriter`` on connections with no socket."""

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.closed = False
        self.writes: list[bytes] = []
        self.transport = FakeTransport()

    def write(self, data: bytes) -> None:
        self.writes.append(data)
        self.buffer.extend(data)

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None

    def text(self) -> str:
        return self.buffer.decode("utf-8")


async def free_port() -> int:
    """A loopback port with nothing listening on it."""
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port
