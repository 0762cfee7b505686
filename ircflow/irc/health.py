"""Health checking helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .connection import ConnectionState

if TYPE_CHECKING:  # pragma: no cover
    from .client import IRCClient


class IRCHealthMonitor:
    def __init__(self, client: IRCClient) -> None:
        self.client = client

    def is_healthy(self) -> bool:
        return bool(self.get_health_snapshot().get("healthy"))

    def get_health_snapshot(self) -> dict[str, Any]:
        client = self.client
        keepalive = client.keepalive
        reasons: list[str] = []
        current_time = client.clock()
        self._check_connection(reasons)
        time_since_activity = self._check_activity(reasons, current_time)
        self._check_keepalive(reasons)
        return {
            "nick": client.nick,
            "state": client.state.name,
            "healthy": len(reasons) == 0,
            "reasons": reasons,
            "connected": client.is_connected,
            "logged_in": client.is_logged_in,
            "last_lag": keepalive.last_lag,
            "ping_outstanding": keepalive.ping_outstanding,
            "time_since_activity": time_since_activity,
            "pending_gates": [
                f"{gate}:{target}" for gate, target in client.gates.pending()
            ],
        }

    def _check_connection(self, reasons: list[str]) -> None:
        state = self.client.state
        if state is ConnectionState.UNCONNECTED:
            reasons.append("not_connected")
        elif state is not ConnectionState.LOGGED_IN:
            reasons.append("not_logged_in")

    def _check_activity(self, reasons: list[str], current_time: float) -> float | None:
        keepalive = self.client.keepalive
        if keepalive.last_activity is None:
            return None
        time_since_activity = current_time - keepalive.last_activity
        if time_since_activity > keepalive.pingtime + keepalive.pongtime:
            reasons.append("stale_activity")
        return time_since_activity

    def _check_keepalive(self, reasons: list[str]) -> None:
        keepalive = self.client.keepalive
        if keepalive.ping_outstanding:
            reasons.append("ping_outstanding")
        if keepalive.last_lag is not None and keepalive.last_lag > keepalive.pongtime / 2:
            reasons.append("high_lag")
