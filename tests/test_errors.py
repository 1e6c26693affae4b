"""
Tests for the internal error hierarchy and structured error logging.
"""

import logging
import ssl

import pytest

from ircwire.errors import (
    ConnectError,
    FallbackError,
    IRCError,
    NetworkError,
    NotConnectedError,
    StateError,
    categorize_error,
    log_error,
    wrap_transport_error,
)
from ircwire.logging_config import error_aggregator


class TestHierarchy:
    def test_connect_error_is_network_error(self):
        assert issubclass(ConnectError, NetworkError)
        assert issubclass(NetworkError, IRCError)

    def test_data_is_copied(self):
        data = {"server": "a:1"}
        error = IRCError("boom", data=data)
        data["server"] = "b:2"
        assert error.data == {"server": "a:1"}

    def test_not_connected_default_message(self):
        assert str(NotConnectedError()) == "not connected"

    def test_fallback_error_records_attempts(self):
        error = FallbackError("gave up", attempts=3)
        assert error.attempts == 3
        assert error.data == {"attempts": 3}


@pytest.mark.parametrize(
    ("error", "category"),
    [
        (ConnectError("refused"), "connect"),
        (ssl.SSLError("bad record"), "connect"),
        (NetworkError("reset"), "network"),
        (ConnectionResetError("reset"), "network"),
        (NotConnectedError(), "state"),
        (StateError("busy"), "state"),
        (FallbackError("gave up", attempts=1), "fallback"),
        (IRCError("odd"), "internal"),
        (ValueError("x"), "unknown"),
    ],
)
def test_categorize_error(error, category):
    assert categorize_error(error) == category


def test_wrap_transport_error():
    wrapped = wrap_transport_error(BrokenPipeError("pipe"), "write")
    assert isinstance(wrapped, NetworkError)
    assert str(wrapped) == "write failed: pipe"
    assert wrapped.data == {"operation": "write", "error_type": "BrokenPipeError"}


def test_log_error_records_category(caplog):
    with caplog.at_level(logging.ERROR):
        log_error("Connection failed", ConnectError("refused"), {"server": "x:1"})

    assert "[CONNECT] Connection failed: refused" in caplog.text
    assert "server=x:1" in caplog.text
    summary = error_aggregator.get_error_summary()
    assert summary["connect"]["total_count"] == 1
    assert summary["connect"]["last_message"] == "Connection failed: refused"
