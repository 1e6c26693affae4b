import asyncio

import pytest
import pytest_asyncio

from ircwire.config import IRCConfig
from ircwire.irc import ConnectionState, EventBus, IRCConnection
from ircwire.logging_config import error_aggregator
from tests.fixtures.irc_server import FakeIRCServer, FakeWriter, StalledPeer


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    yield
    error_aggregator.reset()


@pytest.fixture
def config() -> IRCConfig:
    return IRCConfig(nick="tester", server="127.0.0.1:6667")


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def wired_connection(config: IRCConfig) -> IRCConnection:
    """A connection marked connected whose writes land in a FakeWriter."""
    conn = IRCConnection(config)
    conn.writer = FakeWriter()
    conn.state = ConnectionState.CONNECTED
    return conn


@pytest_asyncio.fixture
async def irc_server():
    server = await FakeIRCServer().start()
    yield server
    await server.stop()


@pytest_asyncio.fixture
async def live_connection(irc_server: FakeIRCServer):
    """A connection dialed to the fake server with short timeouts."""
    conn = IRCConnection(IRCConfig(nick="tester", server=irc_server.address))
    conn.read_timeout = 0.05
    conn.quit_timeout = 1.0
    yield conn
    await conn.quit()
    await conn.dispatcher.join(timeout=1.0)
    conn.dispatcher.cancel_pending()
    await asyncio.sleep(0)


@pytest_asyncio.fixture
async def stalled_peer():
    peer = await StalledPeer().start()
    yield peer
    await peer.stop()
