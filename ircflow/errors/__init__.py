"""Error hierarchy and structured error logging."""

from .handling import classify_error, log_error
from .internal import (
    AlreadyConnected,
    ConnectionStateError,
    InternalError,
    InvalidOutboundMessage,
    MalformedMessage,
    NetworkError,
    NotConnected,
    ParsingError,
    UnparsableISUPPORT,
)

__all__ = [
    "AlreadyConnected",
    "ConnectionStateError",
    "InternalError",
    "InvalidOutboundMessage",
    "MalformedMessage",
    "NetworkError",
    "NotConnected",
    "ParsingError",
    "UnparsableISUPPORT",
    "classify_error",
    "log_error",
]
