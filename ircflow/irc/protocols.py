"""Protocol definitions for the collaborators of the protocol engine.

The engine never opens sockets or runs an event loop itself; it talks to a
timer service, an optional text encoder and, from the dispatcher's side, to
the client behaviour it is attached to. These interfaces describe those seams.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from .isupport import ISupport
    from .message import Message


class Timer(Protocol):
    """Protocol for a restartable one-shot timer."""

    def start(self, duration: float, callback: Callable[[], None]) -> None:
        """Start the timer, replacing it if it is already running."""
        ...

    def stop(self) -> None:
        """Cancel the timer if it is running."""
        ...

    def is_running(self) -> bool:
        """Check whether the timer is armed."""
        ...


class TextEncoder(Protocol):
    """Protocol for the character encoding applied to ``text`` fields."""

    def encode(self, text: str) -> bytes:
        """Encode outbound text."""
        ...

    def decode(self, data: bytes) -> str:
        """Decode inbound text."""
        ...


class ClientBehaviour(Protocol):
    """Protocol for the client the dispatcher enriches messages for."""

    @property
    def isupport(self) -> ISupport:
        """Connection-scoped ISUPPORT state."""
        ...

    @property
    def encoder(self) -> TextEncoder | None:
        """Configured text encoder, if any."""
        ...

    def is_nick_me(self, nick: str | None) -> bool:
        """Check whether ``nick`` folds to the client's own nick."""
        ...

    def write(self, data: bytes) -> None:
        """Write raw bytes to the transport."""
        ...

    def send_message(self, message: Message) -> None:
        """Encode and write a Message."""
        ...
