"""Connection configuration."""

from .model import (  # noqa: F401
    IRCConfig,
    append_underscore,
    is_tls_port,
    parse_server_address,
)

__all__ = ["IRCConfig", "append_underscore", "is_tls_port", "parse_server_address"]
