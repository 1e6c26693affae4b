"""Connection lifecycle: dial, handshake, read loop, serialized writes and quit."""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Callable

from ..config import IRCConfig
from ..constants import IRC_CONNECT_TIMEOUT, IRC_QUIT_TIMEOUT, IRC_READ_TIMEOUT
from ..errors import (
    ConnectError,
    IRCError,
    NotConnectedError,
    StateError,
    wrap_transport_error,
)
from ..logs.logger import logger
from .dispatcher import Handler, IRCDispatcher
from .models import DISCONNECTED, ConnectionState, Line
from .parser import (
    build_join,
    build_nick,
    build_part,
    build_privmsg,
    build_quit,
    build_user,
    encode_line,
    parse_line,
)


class IRCConnection:  # pylint: disable=too-many-instance-attributes
    """One client connection to one IRC server.

    ``connect()`` returns once the handshake is written and the read loop is
    running in the background. Every received line is parsed and handed to the
    connection's own :class:`IRCDispatcher`. The loop ends on a read error, on
    EOF or when ``quit()`` raises the stop signal; on exit it always marks the
    connection disconnected, dispatches a synthetic ``DISCONNECTED`` line and
    then sets the completion signal.
    """

    def __init__(self, config: IRCConfig):
        self.config = config
        self.nick = config.nick
        self.registered = False
        self.state = ConnectionState.DISCONNECTED
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.read_timeout = IRC_READ_TIMEOUT
        self.quit_timeout = IRC_QUIT_TIMEOUT
        self.connect_timeout = IRC_CONNECT_TIMEOUT
        self.dispatcher = IRCDispatcher(self)
        self._debug_send: Callable[[str], None] | None = None
        self._write_lock = asyncio.Lock()
        self._stop = asyncio.Event()
        self._done = asyncio.Event()
        self._read_task: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "irc",
                "state_change",
                level=logging.DEBUG,
                nick=self.nick,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    def add_handler(self, event: str, handler: Handler) -> None:
        """Register ``handler`` for ``event``; ``*`` receives every line."""
        self.dispatcher.add_handler(event, handler)

    def set_debug_send(self, fn: Callable[[str], None] | None) -> None:
        """Install a hook called with every outbound line before it is written."""
        self._debug_send = fn

    @property
    def debug_send(self) -> Callable[[str], None] | None:
        return self._debug_send

    def _ssl_context(self) -> ssl.SSLContext | None:
        if not self.config.tls:
            return None
        context = ssl.create_default_context()
        if not self.config.tls_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def connect(self) -> None:
        """Dial the server, register, and start the read loop.

        Raises:
            StateError: The connection is not disconnected.
            ConnectError: The dial or the handshake write failed; the
                connection is left disconnected.
        """
        if self.state is not ConnectionState.DISCONNECTED:
            raise StateError(f"cannot connect while {self.state.name.lower()}")
        host, port = self.config.host, self.config.port
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "irc", "connect_start", nick=self.nick, server=host, port=port, tls=self.config.tls
        )
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(
                    host, port, ssl=self._ssl_context(), limit=2**16
                ),
                timeout=self.connect_timeout,
            )
        except (OSError, TimeoutError) as e:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.log_event(
                "irc",
                "connect_failed",
                level=logging.ERROR,
                nick=self.nick,
                server=host,
                port=port,
                error=str(e) or type(e).__name__,
            )
            raise ConnectError(
                f"failed to connect: {e or type(e).__name__}",
                data={"server": self.config.server, "tls": self.config.tls},
            ) from e
        except asyncio.CancelledError:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.log_event("irc", "connect_cancelled", level=logging.DEBUG, nick=self.nick)
            raise

        self.nick = self.config.nick
        self.registered = False
        self._stop = asyncio.Event()
        self._done = asyncio.Event()

        # Hold the write lock across both lines so nothing is sent before
        # registration.
        try:
            async with self._write_lock:
                self._set_state(ConnectionState.CONNECTED)
                await self._write(build_nick(self.nick))
                await self._write(build_user(self.config.user, self.config.realname))
        except IRCError as e:
            self._set_state(ConnectionState.DISCONNECTED)
            await self._close_transport()
            raise ConnectError(f"registration failed: {e}") from e
        except asyncio.CancelledError:
            # No read loop exists yet, so nothing else will close the socket.
            self._set_state(ConnectionState.DISCONNECTED)
            self._abort_transport()
            logger.log_event("irc", "connect_cancelled", level=logging.DEBUG, nick=self.nick)
            raise

        logger.log_event("irc", "handshake_sent", level=logging.DEBUG, nick=self.nick)
        self._read_task = asyncio.create_task(
            self._read_loop(), name=f"irc-read-{self.config.server}"
        )
        logger.log_event("irc", "connect_success", nick=self.nick, server=host, port=port)

    async def _read_loop(self) -> None:
        reader = self.reader
        try:
            while reader is not None and not self._stop.is_set():
                try:
                    data = await asyncio.wait_for(
                        reader.readline(), timeout=self.read_timeout
                    )
                except TimeoutError:
                    continue
                except (OSError, ValueError) as e:
                    logger.log_event(
                        "irc",
                        "read_error",
                        level=logging.WARNING,
                        nick=self.nick,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    break
                if not data:
                    logger.log_event("irc", "read_eof", nick=self.nick)
                    break
                text = data.decode("utf-8", errors="replace").strip()
                if not text:
                    continue
                await self.dispatcher.dispatch(parse_line(text))
        finally:
            if not self._stop.is_set():
                await self._close_transport()
            self._set_state(ConnectionState.DISCONNECTED)
            try:
                await self.dispatcher.dispatch(Line(command=DISCONNECTED))
            finally:
                self._done.set()
                logger.log_event("irc", "read_loop_exit", level=logging.DEBUG, nick=self.nick)

    async def _write(self, command: str) -> None:
        """Write one line; the caller holds the write lock."""
        if self._debug_send is not None:
            try:
                self._debug_send(command)
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "irc", "debug_hook_error", level=logging.WARNING, nick=self.nick, error=str(e)
                )
        writer = self.writer
        if writer is None:
            raise NotConnectedError()
        try:
            writer.write(encode_line(command))
            await writer.drain()
        except (OSError, RuntimeError) as e:
            logger.log_event(
                "irc", "send_failed", level=logging.WARNING, nick=self.nick, error=str(e)
            )
            raise wrap_transport_error(e, "write") from e
        logger.log_event("irc", "send", level=logging.DEBUG, nick=self.nick, line=command)

    async def send_line(self, command: str) -> None:
        """Send one raw line as a single serialized write-plus-flush.

        Raises:
            NotConnectedError: The connection is not in the connected state.
            NetworkError: The write or flush failed.
        """
        async with self._write_lock:
            if not self.connected:
                raise NotConnectedError()
            await self._write(command)

    async def raw(self, command: str) -> None:
        await self.send_line(command.rstrip("\r\n"))

    async def join(self, channel: str) -> None:
        await self.send_line(build_join(channel))

    async def part(self, channel: str) -> None:
        await self.send_line(build_part(channel))

    async def privmsg(self, target: str, message: str) -> None:
        await self.send_line(build_privmsg(target, message))

    async def change_nick(self, nick: str) -> None:
        await self.send_line(build_nick(nick))
        self.nick = nick

    async def quit(self, reason: str = "") -> None:
        """Send QUIT, stop the read loop and close the transport.

        Every step draws on one ``quit_timeout`` budget: a QUIT stuck behind a
        peer that stopped reading is abandoned, and a transport that does not
        close in time is aborted. Always leaves the connection disconnected.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.quit_timeout

        def remaining() -> float:
            return max(deadline - loop.time(), 0.0)

        logger.log_event("irc", "quit_start", nick=self.nick, reason=reason)
        try:
            await asyncio.wait_for(self.send_line(build_quit(reason)), timeout=remaining())
        except IRCError as e:
            logger.log_event(
                "irc", "quit_send_failed", level=logging.DEBUG, nick=self.nick, error=str(e)
            )
        except TimeoutError:
            logger.log_event(
                "irc", "quit_send_failed", level=logging.WARNING, nick=self.nick, error="timed out"
            )
        if self.state is ConnectionState.CONNECTED:
            self._set_state(ConnectionState.DISCONNECTING)
        if not self._stop.is_set():
            self._stop.set()

        task = self._read_task
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(self._done.wait(), timeout=remaining())
            except TimeoutError:
                logger.log_event(
                    "irc",
                    "quit_timeout",
                    level=logging.WARNING,
                    nick=self.nick,
                    timeout=self.quit_timeout,
                )
        await self._close_transport(timeout=remaining())
        if task is not None and not task.done():
            task.cancel()
            # Let the loop's cleanup finish before a new connect() can start.
            await asyncio.wait({task}, timeout=self.quit_timeout)
        self._set_state(ConnectionState.DISCONNECTED)

    async def wait_disconnected(self, timeout: float | None = None) -> bool:
        """Wait for the read loop to finish; False if the timeout expired."""
        if self._read_task is None:
            return True
        try:
            await asyncio.wait_for(self._done.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    def _abort_transport(self) -> None:
        writer = self.writer
        if writer is None:
            return
        self.writer = None
        self.reader = None
        writer.transport.abort()
        logger.log_event("irc", "transport_aborted", level=logging.DEBUG, nick=self.nick)

    async def _close_transport(self, timeout: float | None = None) -> None:
        """Close gracefully within ``timeout``, aborting the transport otherwise."""
        writer = self.writer
        if writer is None:
            return
        if timeout is None:
            timeout = self.quit_timeout
        self.writer = None
        self.reader = None
        writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=timeout)
        except TimeoutError:
            writer.transport.abort()
            logger.log_event("irc", "transport_aborted", level=logging.DEBUG, nick=self.nick)
            return
        except OSError as e:
            logger.log_event(
                "irc",
                "transport_close_error",
                level=logging.DEBUG,
                nick=self.nick,
                error=str(e) or type(e).__name__,
            )
        logger.log_event("irc", "transport_closed", level=logging.DEBUG, nick=self.nick)
