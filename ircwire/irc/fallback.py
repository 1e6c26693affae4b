"""Retry a TLS connection in plaintext after a TLS-classified failure."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import IRCConfig
from ..constants import (
    TLS_FALLBACK_DELAY,
    TLS_FALLBACK_MAX_ATTEMPTS,
    TLS_FALLBACK_MAX_BACKOFF,
)
from ..errors import ConnectError, FallbackError
from ..logs.logger import logger
from .connection import IRCConnection


class TLSFallbackPolicy:
    """Rebuilds a TLS connection as a plaintext one.

    The old connection is quit and discarded; the new one gets the same
    config with TLS off, the complete handler registry and debug hook of the
    old one, and the same timeouts. The plaintext connect is retried with
    exponential backoff up to ``max_attempts`` times. A config that already
    has TLS off is returned untouched, so the policy cannot cycle.
    """

    def __init__(
        self,
        *,
        delay: float = TLS_FALLBACK_DELAY,
        max_attempts: int = TLS_FALLBACK_MAX_ATTEMPTS,
        max_backoff: float = TLS_FALLBACK_MAX_BACKOFF,
        backoff_multiplier: float = 1.0,
        connection_factory: Callable[[IRCConfig], IRCConnection] = IRCConnection,
    ) -> None:
        self.delay = delay
        self.max_attempts = max_attempts
        self.max_backoff = max_backoff
        self.backoff_multiplier = backoff_multiplier
        self.connection_factory = connection_factory

    @staticmethod
    def applies_to(conn: IRCConnection) -> bool:
        return conn.config.tls

    def rebuild(self, conn: IRCConnection) -> IRCConnection:
        """New plaintext connection carrying over the old one's handlers."""
        new_conn = self.connection_factory(conn.config.without_tls())
        new_conn.dispatcher.replace(conn.dispatcher.snapshot())
        new_conn.set_debug_send(conn.debug_send)
        new_conn.read_timeout = conn.read_timeout
        new_conn.quit_timeout = conn.quit_timeout
        new_conn.connect_timeout = conn.connect_timeout
        return new_conn

    async def fallback(self, conn: IRCConnection) -> IRCConnection:
        """Quit ``conn`` and return a connected plaintext replacement.

        Raises:
            FallbackError: Every plaintext connect attempt failed.
        """
        if not self.applies_to(conn):
            logger.log_event("fallback", "skipped", level=logging.DEBUG, nick=conn.nick)
            return conn

        logger.log_event("fallback", "triggered", level=logging.WARNING, nick=conn.nick)
        await conn.quit("")
        await asyncio.sleep(self.delay)
        new_conn = self.rebuild(conn)
        try:
            await self._connect_with_retry(new_conn)
        except asyncio.CancelledError:
            logger.log_event("fallback", "cancelled", level=logging.DEBUG, nick=new_conn.nick)
            await new_conn.quit()
            raise
        logger.log_event("fallback", "success", nick=new_conn.nick, server=new_conn.config.server)
        return new_conn

    async def _connect_with_retry(self, conn: IRCConnection) -> None:
        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.log_event(
                "fallback",
                "attempt_failed",
                level=logging.WARNING,
                nick=conn.nick,
                attempt=retry_state.attempt_number,
                error=str(error),
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier, max=self.max_backoff),
            retry=retry_if_exception_type(ConnectError),
            before_sleep=before_sleep,
            reraise=True,
        )
        try:
            await retrying(conn.connect)
        except ConnectError as e:
            logger.log_event(
                "fallback",
                "exhausted",
                level=logging.ERROR,
                nick=conn.nick,
                attempts=self.max_attempts,
                error=str(e),
            )
            raise FallbackError(
                f"plaintext reconnect failed after {self.max_attempts} attempts: {e}",
                attempts=self.max_attempts,
            ) from e
