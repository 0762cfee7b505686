"""Idle PING / PONG keepalive cycle."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..constants import IRC_PINGTIME, IRC_PONGTIME
from ..logs.logger import logger
from .protocols import Timer


class Keepalive:
    """Sends ``PING`` after ``pingtime`` idle seconds and waits ``pongtime``.

    ``on_pong_reply(lag)`` and ``on_ping_timeout()`` are plain attributes the
    owner may replace. A timeout never disconnects; that is the owner's call.
    """

    def __init__(
        self,
        ping_timer: Timer,
        pong_timer: Timer,
        send_ping: Callable[[str], None],
        pingtime: float = IRC_PINGTIME,
        pongtime: float = IRC_PONGTIME,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ping_timer = ping_timer
        self.pong_timer = pong_timer
        self.send_ping = send_ping
        self.pingtime = pingtime
        self.pongtime = pongtime
        self.clock = clock
        self.ping_sent_at: float | None = None
        self.last_lag: float | None = None
        self.last_activity: float | None = None
        self.on_pong_reply: Callable[[float], None] | None = None
        self.on_ping_timeout: Callable[[], None] | None = None

    def start(self) -> None:
        self.last_activity = self.clock()
        self.ping_timer.start(self.pingtime, self._ping_expired)

    def stop(self) -> None:
        self.ping_timer.stop()
        self.pong_timer.stop()
        self.ping_sent_at = None

    def activity(self) -> None:
        """Restart the idle timer after a successfully parsed line."""
        self.last_activity = self.clock()
        self.ping_timer.start(self.pingtime, self._ping_expired)

    @property
    def ping_outstanding(self) -> bool:
        return self.pong_timer.is_running()

    def pong_received(self) -> float | None:
        """Handle a PONG; returns the lag, or ``None`` for a stray reply."""
        if not self.pong_timer.is_running() or self.ping_sent_at is None:
            return None
        lag = self.clock() - self.ping_sent_at
        self.pong_timer.stop()
        self.ping_sent_at = None
        self.last_lag = lag
        logger.log_event("irc", "pong_reply", level=logging.DEBUG, lag=round(lag, 3))
        if self.on_pong_reply is not None:
            self.on_pong_reply(lag)
        return lag

    def _ping_expired(self) -> None:
        now = self.clock()
        self.ping_sent_at = now
        self.send_ping(str(int(now)))
        self.pong_timer.start(self.pongtime, self._pong_expired)

    def _pong_expired(self) -> None:
        waited = self.clock() - self.ping_sent_at if self.ping_sent_at else self.pongtime
        logger.log_event(
            "irc", "ping_timeout", level=logging.WARNING, waited=round(waited, 3)
        )
        self.ping_sent_at = None
        if self.on_ping_timeout is not None:
            self.on_ping_timeout()
