from __future__ import annotations

import codecs
import getpass
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import (
    IRC_DEFAULT_PORT,
    IRC_DEFAULT_REALNAME,
    IRC_PINGTIME,
    IRC_PONGTIME,
)


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "ircflow"


class CodecTextEncoder:
    """Text encoder backed by a Python codec.

    Inbound bytes that do not decode are replaced rather than rejected, so a
    single stray byte cannot make a whole line undeliverable.
    """

    def __init__(self, encoding: str) -> None:
        self.encoding = codecs.lookup(encoding).name

    def encode(self, text: str) -> bytes:
        return text.encode(self.encoding)

    def decode(self, data: bytes) -> str:
        return data.decode(self.encoding, errors="replace")

    def __repr__(self) -> str:
        return f"CodecTextEncoder({self.encoding!r})"


class ConnectionConfig(BaseModel):
    """Connection and identity settings for one IRC connection.

    Attributes:
        nick: Initial nick; may be supplied later to ``login``.
        user: Ident / user name sent in ``USER``.
        realname: Real name sent in ``USER``.
        password: Optional server password sent as ``PASS``.
        host: Server hostname for the asyncio adapter.
        port: Server port.
        ssl: Whether the adapter wraps the connection in TLS.
        pingtime: Idle seconds before a keepalive ``PING``.
        pongtime: Seconds to wait for the matching ``PONG``.
        encoding: Optional codec applied to ``text`` fields.
    """

    nick: str | None = None
    user: str = Field(default_factory=_default_user)
    realname: str = IRC_DEFAULT_REALNAME
    password: str | None = None
    host: str | None = None
    port: int = Field(default=IRC_DEFAULT_PORT, ge=1, le=65535)
    ssl: bool = False
    pingtime: float = Field(default=IRC_PINGTIME, gt=0)
    pongtime: float = Field(default=IRC_PONGTIME, gt=0)
    encoding: str | None = None

    @field_validator("nick", "user")
    @classmethod
    def validate_no_whitespace(cls, v: str | None) -> str | None:
        """Nick and user travel as middle parameters and cannot contain spaces."""
        if v is None:
            return v
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("must be non-empty and contain no whitespace")
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        try:
            return codecs.lookup(v.strip()).name
        except LookupError as e:
            raise ValueError(f"unknown encoding {v!r}") from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConnectionConfig:
        """Create a ConnectionConfig from a dictionary.

        Args:
            data: Dictionary containing connection settings.

        Returns:
            ConnectionConfig instance.
        """
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def make_encoder(self) -> CodecTextEncoder | None:
        if self.encoding is None:
            return None
        return CodecTextEncoder(self.encoding)
