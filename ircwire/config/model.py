from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import DEFAULT_IRC_PORT, TLS_PORTS


def append_underscore(nick: str) -> str:
    """Default nickname-collision transform: ``nick`` -> ``nick_``."""
    return f"{nick}_"


def parse_server_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` or ``host/port`` into its parts.

    A missing or unparsable port falls back to the plaintext default 6667.

    Args:
        address: Server address as typed by a user.

    Returns:
        Tuple of (host, port).
    """
    normalized = address.strip().replace("/", ":")
    host, sep, port = normalized.rpartition(":")
    if not sep or not host:
        return normalized, DEFAULT_IRC_PORT
    try:
        return host, int(port)
    except ValueError:
        return normalized, DEFAULT_IRC_PORT


def is_tls_port(port: int) -> bool:
    """Return True for ports conventionally served over TLS."""
    return port in TLS_PORTS


class IRCConfig(BaseModel):
    """Connection configuration; immutable once built.

    Attributes:
        nick: Nickname sent in the registration handshake.
        user: Username for the USER line; defaults to the nickname.
        realname: Real name for the USER line; defaults to the nickname.
        server: Server address in ``host:port`` form.
        tls: Whether to dial over TLS.
        tls_verify: Whether to verify the server certificate and hostname.
        new_nick: Maps a rejected nickname to the next candidate.
    """

    model_config = ConfigDict(frozen=True)

    nick: str = Field(min_length=1)
    user: str = ""
    realname: str = ""
    server: str
    tls: bool = False
    tls_verify: bool = True
    new_nick: Callable[[str], str] = append_underscore

    @field_validator("nick", "user", "realname", mode="before")
    @classmethod
    def strip_spaces(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if " " in v:
                raise ValueError("must not contain spaces")
        return v

    @field_validator("server", mode="before")
    @classmethod
    def normalize_server(cls, v: Any) -> str:
        """Accept ``host/port`` as well and always store ``host:port``."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("server must be a non-empty 'host:port' string")
        host, port = parse_server_address(v)
        return f"{host}:{port}"

    @model_validator(mode="before")
    @classmethod
    def default_identity(cls, data: Any) -> Any:
        """Fill username and real name from the nickname when not given."""
        if isinstance(data, dict):
            data = dict(data)
            nick = data.get("nick")
            if not data.get("user"):
                data["user"] = nick
            if not data.get("realname"):
                data["realname"] = nick
        return data

    @property
    def host(self) -> str:
        return parse_server_address(self.server)[0]

    @property
    def port(self) -> int:
        return parse_server_address(self.server)[1]

    def without_tls(self) -> IRCConfig:
        """Return an otherwise identical config that dials plaintext."""
        return self.model_copy(update={"tls": False, "tls_verify": False})

    @classmethod
    def from_address(
        cls, address: str, nick: str, *, tls_verify: bool = True, **kwargs: Any
    ) -> IRCConfig:
        """Build a config from a user-supplied address, enabling TLS on TLS ports.

        Args:
            address: ``host:port`` or ``host/port``.
            nick: Nickname to register with.
            tls_verify: Whether to verify certificates when TLS is enabled.
            **kwargs: Any other IRCConfig field.

        Returns:
            IRCConfig instance.
        """
        host, port = parse_server_address(address)
        return cls(
            nick=nick,
            server=f"{host}:{port}",
            tls=is_tls_port(port),
            tls_verify=tls_verify,
            **kwargs,
        )
