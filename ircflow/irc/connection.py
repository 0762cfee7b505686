"""Connection lifecycle states."""

from __future__ import annotations

import logging
from enum import Enum, auto

from ..errors import AlreadyConnected, NotConnected
from ..logs.logger import logger


class ConnectionState(Enum):
    UNCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    LOGGED_IN = auto()


class ConnectionStateMachine:
    """UNCONNECTED -> CONNECTING -> CONNECTED -> LOGGED_IN; ``reset`` from anywhere."""

    def __init__(self) -> None:
        self.state = ConnectionState.UNCONNECTED

    @property
    def is_connected(self) -> bool:
        return self.state in (ConnectionState.CONNECTED, ConnectionState.LOGGED_IN)

    @property
    def is_logged_in(self) -> bool:
        return self.state is ConnectionState.LOGGED_IN

    def begin_connect(self) -> None:
        if self.state is not ConnectionState.UNCONNECTED:
            raise AlreadyConnected(
                "Connection already in progress", data={"state": self.state.name}
            )
        self._set_state(ConnectionState.CONNECTING)

    def connected(self) -> None:
        if self.is_connected:
            raise AlreadyConnected(
                "Transport reported connected twice", data={"state": self.state.name}
            )
        self._set_state(ConnectionState.CONNECTED)

    def logged_in(self) -> bool:
        """Enter LOGGED_IN; returns False when already there."""
        if self.state is ConnectionState.LOGGED_IN:
            return False
        if not self.is_connected:
            raise NotConnected(
                "Welcome received while not connected", data={"state": self.state.name}
            )
        self._set_state(ConnectionState.LOGGED_IN)
        return True

    def require_connected(self) -> None:
        if not self.is_connected:
            raise NotConnected(
                "Cannot send while not connected", data={"state": self.state.name}
            )

    def reset(self) -> None:
        if self.state is not ConnectionState.UNCONNECTED:
            self._set_state(ConnectionState.UNCONNECTED)

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self.state
        self.state = new_state
        logger.log_event(
            "irc",
            "state_change",
            level=logging.DEBUG,
            old_state=old_state.name,
            new_state=new_state.name,
        )
