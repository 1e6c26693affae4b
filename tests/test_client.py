"""
Tests for the IRCClient facade.
"""

import asyncio

import pytest

from ircwire.config import IRCConfig
from ircwire.errors import ConnectError
from ircwire.irc import ConnectionState, EventBus, IRCClient, IRCConnection, TLSFallbackPolicy
from ircwire.irc import handlers as ev
from ircwire.irc import parse_line
from tests.fixtures.irc_server import FakeWriter, free_port


def make_client(server: str, tls: bool = False, **policy) -> IRCClient:
    policy.setdefault("delay", 0)
    policy.setdefault("backoff_multiplier", 0)
    client = IRCClient(
        IRCConfig(nick="tester", server=server, tls=tls),
        fallback=TLSFallbackPolicy(**policy),
    )
    client.connection.read_timeout = 0.05
    return client


@pytest.mark.asyncio
async def test_connect_failure_is_published_and_raised():
    client = make_client(f"127.0.0.1:{await free_port()}")

    with pytest.raises(ConnectError):
        await client.connect()

    message = client.bus.get_nowait()
    assert message.type == ev.ERROR
    assert message.get("message").startswith("failed to connect")


@pytest.mark.asyncio
async def test_server_lines_reach_the_event_stream(irc_server):
    client = make_client(irc_server.address)
    try:
        await client.connect()
        await irc_server.client_connected.wait()
        await irc_server.send(":srv 001 tester :Welcome home")

        first = await client.next_event()
        second = await client.next_event()
        assert [first.type, second.type] == [ev.CONNECTED, ev.WELCOME]
        assert client.connected
    finally:
        await client.aclose()
    assert not client.connected


@pytest.mark.asyncio
async def test_tls_error_triggers_plaintext_fallback(irc_server):
    client = make_client(irc_server.address, tls=True)
    old = client.connection
    try:
        await client.bus.publish(ev.TLS_ERROR, {"message": "SSL handshake failed"})

        message = await client.next_event()
        assert message.type == ev.TLS_ERROR
        assert client.fallback_pending
        await client.wait_fallback()

        assert client.connection is not old
        assert client.config.tls is False
        assert client.connected
        reconnected = await client.next_event()
        assert reconnected.type == ev.RECONNECTED
        lines = await irc_server.wait_for_lines(2)
        assert lines[0] == "NICK tester\r\n"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_tls_error_on_plaintext_connection_is_only_delivered(config):
    client = IRCClient(config)
    await client.bus.publish(ev.TLS_ERROR, {"message": "TLS required"})

    message = await client.next_event()

    assert message.type == ev.TLS_ERROR
    assert not client.fallback_pending
    assert client.bus.empty()


@pytest.mark.asyncio
async def test_failed_fallback_publishes_error():
    client = make_client(f"127.0.0.1:{await free_port()}", tls=True, max_attempts=1)
    await client.bus.publish(ev.TLS_ERROR, {"message": "SSL error"})

    await client.next_event()
    await client.wait_fallback()

    message = await client.next_event()
    assert message.type == ev.ERROR
    assert "after 1 attempts" in message.get("message")
    await client.aclose()


@pytest.mark.asyncio
async def test_aclose_cancels_handlers_blocked_on_a_full_bus(config):
    client = IRCClient(config, bus=EventBus(maxsize=1))
    conn = client.connection
    conn.writer = FakeWriter()
    conn.state = ConnectionState.CONNECTED
    conn.quit_timeout = 0.1
    await client.bus.publish(ev.NOTICE, {"sender": "srv", "message": "fills the bus"})

    await conn.dispatcher.dispatch(parse_line(":bob!b@host JOIN #room"))
    await asyncio.sleep(0.01)
    assert conn.dispatcher.pending == 1

    await client.aclose()

    assert conn.dispatcher.pending == 0
    assert not client.connected


@pytest.mark.asyncio
async def test_aclose_during_fallback_closes_the_connection_being_built(irc_server):
    built: list[IRCConnection] = []

    class StallingConnection(IRCConnection):
        async def _write(self, command: str) -> None:
            if command.startswith("USER"):
                await asyncio.Event().wait()
            await super()._write(command)

    def factory(cfg: IRCConfig) -> IRCConnection:
        conn = StallingConnection(cfg)
        built.append(conn)
        return conn

    client = make_client(irc_server.address, tls=True, connection_factory=factory)
    await client.bus.publish(ev.TLS_ERROR, {"message": "SSL error"})
    await client.next_event()
    await irc_server.wait_for_lines(1)

    await client.aclose()

    assert not client.fallback_pending
    assert len(built) == 1
    assert built[0].state is ConnectionState.DISCONNECTED
    assert built[0].writer is None
