"""Timer protocol implementations: asyncio-backed, and an inert default."""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class NullTimer:
    """Tracks start/stop but never fires.

    The default for an ``IRCClient`` built without a timer service, so the
    core stays usable from plain synchronous code; keepalive is then inactive.
    """

    def __init__(self) -> None:
        self._running = False

    def start(self, duration: float, callback: Callable[[], None]) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def is_running(self) -> bool:
        return self._running


class AsyncioTimer:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    def start(self, duration: float, callback: Callable[[], None]) -> None:
        self.stop()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(duration, self._fire, callback)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def is_running(self) -> bool:
        return self._handle is not None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
