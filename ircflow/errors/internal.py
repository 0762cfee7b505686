"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the protocol engine and the
transport adapter. Inbound failures are scoped to a single line; outbound
failures are raised before any byte reaches the wire.

Classes:
  InternalError           – Base for all internal errors.
  NetworkError            – Transport/IO issues (safe to retry).
  ParsingError            – Base for data that could not be interpreted.
  MalformedMessage        – An inbound line does not parse into a Message.
  UnparsableISUPPORT      – A malformed ISUPPORT token; recovered locally.
  InvalidOutboundMessage  – A Message violates a wire invariant.
  ConnectionStateError    – Operation not valid in the current state.
  NotConnected            – Sending while not connected.
  AlreadyConnected        – Connecting while not unconnected.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This includes connection refusals, resets or timeouts that may be retried.
    """


class ParsingError(InternalError):
    """Exception raised when received data cannot be interpreted."""


class MalformedMessage(ParsingError):
    """Exception raised when a line fails to parse into a Message.

    The offending line is available as ``data["line"]``.
    """

    def __init__(self, message: str, *, line: str | None = None) -> None:
        super().__init__(message, data={"line": line} if line is not None else None)
        self.line = line


class UnparsableISUPPORT(ParsingError):
    """Exception raised for a malformed ISUPPORT value.

    Never propagated out of the ISUPPORT state; the token is logged and skipped.
    """


class InvalidOutboundMessage(InternalError, ValueError):
    """Exception raised when a Message would violate a wire invariant."""


class ConnectionStateError(InternalError):
    """Exception raised when an operation is not valid in the current state."""


class NotConnected(ConnectionStateError):
    """Exception raised by send operations outside CONNECTED / LOGGED_IN."""


class AlreadyConnected(ConnectionStateError):
    """Exception raised when connecting while a connection is already active."""


__all__ = [
    "InternalError",
    "NetworkError",
    "ParsingError",
    "MalformedMessage",
    "UnparsableISUPPORT",
    "InvalidOutboundMessage",
    "ConnectionStateError",
    "NotConnected",
    "AlreadyConnected",
]
