"""asyncio streams transport for ``IRCClient``."""

from __future__ import annotations

import asyncio
import logging
import ssl as ssl_module
from collections.abc import Callable
from typing import Any

from ..config.model import ConnectionConfig
from ..constants import IRC_CONNECT_TIMEOUT, IRC_READ_CHUNK_SIZE
from ..errors import NetworkError, NotConnected
from ..logs.logger import logger
from ..utils.retry import retry_async
from .client import IRCClient
from .connection import ConnectionState
from .health import IRCHealthMonitor
from .message import Message
from .registry import Handler
from .timers import AsyncioTimer


class AsyncIRC:
    def __init__(self, config: ConnectionConfig | None = None) -> None:
        self.config = config or ConnectionConfig()
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.client = IRCClient(
            self._write,
            config=self.config,
            ping_timer=AsyncioTimer(),
            pong_timer=AsyncioTimer(),
        )
        self.health_monitor = IRCHealthMonitor(self.client)
        self._reader_task: asyncio.Task[None] | None = None
        self._closed = asyncio.Event()

    @property
    def state(self) -> ConnectionState:
        return self.client.state

    def on(self, event: str) -> Callable[[Handler], Handler]:
        return self.client.on(event)

    async def connect(
        self,
        host: str | None = None,
        port: int | None = None,
        ssl: bool | ssl_module.SSLContext | None = None,
    ) -> None:
        host = host or self.config.host
        if not host:
            raise NetworkError("No server host configured")
        port = port or self.config.port
        use_ssl = self.config.ssl if ssl is None else ssl

        self.client.connect()
        logger.log_event("irc", "connect_start", server=host, port=port)

        async def attempt(
            attempt_number: int,
        ) -> tuple[tuple[asyncio.StreamReader, asyncio.StreamWriter] | None, bool]:
            logger.log_event(
                "irc",
                "open_connection",
                level=logging.DEBUG,
                server=host,
                port=port,
                attempt=attempt_number,
                timeout=IRC_CONNECT_TIMEOUT,
            )
            streams = await asyncio.wait_for(
                asyncio.open_connection(host, port, ssl=use_ssl or None),
                timeout=IRC_CONNECT_TIMEOUT,
            )
            return streams, False

        try:
            streams = await retry_async(attempt)
        except NetworkError as e:
            logger.log_event(
                "irc",
                "connect_failed",
                level=logging.ERROR,
                server=host,
                port=port,
                error=str(e.data.get("final_error")),
            )
            self.client.on_closed()
            raise

        self.reader, self.writer = streams
        self._closed.clear()
        self.client.on_connected()
        self._reader_task = asyncio.create_task(self._read_loop())
        logger.log_event("irc", "connection_established", server=host, port=port)

    async def login(
        self,
        nick: str | None = None,
        user: str | None = None,
        realname: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Connect if needed, register and wait for the ``001`` welcome."""
        if not self.client.is_connected:
            await self.connect()
        loop = asyncio.get_running_loop()
        welcome: asyncio.Future[None] = loop.create_future()

        def on_login(client: IRCClient) -> None:
            if not welcome.done():
                welcome.set_result(None)

        self.client.login(
            nick=nick,
            user=user,
            realname=realname,
            password=password,
            on_login=on_login,
        )
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {welcome, closed},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            closed.cancel()
        if welcome not in done:
            welcome.cancel()
            if self._closed.is_set():
                raise NotConnected("Connection closed before login completed")
            raise TimeoutError("Timed out waiting for the server welcome")

    def send_message(
        self, message: Message | str, prefix: str | None = None, *args: str
    ) -> None:
        self.client.send_message(message, prefix, *args)

    async def drain(self) -> None:
        if self.writer is not None:
            await self.writer.drain()

    async def disconnect(self) -> None:
        task = self._reader_task
        self._reader_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._close_streams()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def get_health_snapshot(self) -> dict[str, Any]:
        return self.health_monitor.get_health_snapshot()

    def _write(self, data: bytes) -> None:
        if self.writer is None:
            raise NotConnected("Transport is closed")
        self.writer.write(data)

    async def _read_loop(self) -> None:
        reader = self.reader
        assert reader is not None
        pending = b""
        try:
            while True:
                chunk = await reader.read(IRC_READ_CHUNK_SIZE)
                if not chunk:
                    logger.log_event("irc", "eof", level=logging.DEBUG)
                    break
                pending += chunk
                consumed = self.client.on_bytes(pending)
                pending = pending[consumed:]
        except (ConnectionError, OSError) as e:
            logger.log_event(
                "irc", "read_error", level=logging.WARNING, error=str(e)
            )
        finally:
            if self._reader_task is asyncio.current_task():
                self._reader_task = None
                await self._close_streams()

    async def _close_streams(self) -> None:
        writer = self.writer
        self.writer = None
        self.reader = None
        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.log_event(
                    "irc", "close_error", level=logging.DEBUG, error=str(e)
                )
        if self.client.state is not ConnectionState.UNCONNECTED:
            self.client.on_closed()
            logger.log_event("irc", "disconnected", level=logging.WARNING)
        self._closed.set()
