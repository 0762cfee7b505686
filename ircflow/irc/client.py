"""Sans-IO IRC client core.

One ``IRCClient`` per connection. The transport feeds it bytes through
``on_bytes`` and receives outbound bytes through the ``writer`` callable;
timers come in through the ``Timer`` protocol. Nothing here blocks or awaits.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config.model import ConnectionConfig
from ..constants import WIRE_CODEC
from ..errors import InvalidOutboundMessage, MalformedMessage, log_error
from ..logs.logger import logger
from .arg_names import GATE_DISPOSITIONS, gate_disposition, text_arg_index
from .connection import ConnectionState, ConnectionStateMachine
from .dispatcher import HintDispatcher
from .gates import GATES, GateBuffer
from .heartbeat import Keepalive
from .isupport import ISupport
from .message import Message, parse
from .protocols import TextEncoder, Timer
from .registry import Handler, HandlerRegistry, HandlerSlot
from .text import dispatch_text
from .timers import NullTimer

Hints = dict[str, Any]
LoginCallback = Callable[["IRCClient"], None]


class IRCClient:
    def __init__(
        self,
        writer: Callable[[bytes], None] | None = None,
        *,
        config: ConnectionConfig | None = None,
        ping_timer: Timer | None = None,
        pong_timer: Timer | None = None,
        clock: Callable[[], float] = time.time,
        encoder: TextEncoder | None = None,
    ) -> None:
        self.config = config or ConnectionConfig()
        self.writer = writer
        self.clock = clock
        self._encoder = encoder if encoder is not None else self.config.make_encoder()
        self._isupport = ISupport()
        self._state = ConnectionStateMachine()
        self._server_info: dict[str, str | None] = {}
        self._login_callbacks: list[LoginCallback] = []
        self.nick: str | None = None
        self.nick_folded: str | None = None
        if self.config.nick:
            self._set_nick(self.config.nick)

        self.registry = HandlerRegistry()
        self.dispatcher = HintDispatcher(self, self.registry)
        self.gates = GateBuffer()
        self.keepalive = Keepalive(
            ping_timer or NullTimer(),
            pong_timer or NullTimer(),
            self._send_ping,
            pingtime=self.config.pingtime,
            pongtime=self.config.pongtime,
            clock=clock,
        )
        self.keepalive.on_pong_reply = self._pong_reply
        self.keepalive.on_ping_timeout = self._ping_timeout

        self.on_ping_timeout: Callable[[IRCClient], None] | None = None
        self.on_pong_reply: Callable[[IRCClient, float], None] | None = None
        self.on_disconnect: Callable[[IRCClient], None] | None = None

        self._register_builtin_handlers()

    # ClientBehaviour

    @property
    def isupport(self) -> ISupport:
        return self._isupport

    @property
    def encoder(self) -> TextEncoder | None:
        return self._encoder

    def is_nick_me(self, nick: str | None) -> bool:
        if nick is None or self.nick_folded is None:
            return False
        return self._isupport.casefold(nick) == self.nick_folded

    def write(self, data: bytes) -> None:
        if self.writer is None:
            raise InvalidOutboundMessage("No transport writer attached")
        self.writer(data)

    # State

    @property
    def state(self) -> ConnectionState:
        return self._state.state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def is_logged_in(self) -> bool:
        return self._state.is_logged_in

    # Transport entry points

    def connect(self) -> None:
        self._state.begin_connect()

    def on_connected(self) -> None:
        self._state.connected()
        self.keepalive.start()

    def on_bytes(self, buf: bytes) -> int:
        """Process every complete line in ``buf``; returns the bytes consumed.

        A trailing partial line is left unconsumed for the transport to hand
        back together with the next read.
        """
        consumed = 0
        while (end := buf.find(b"\n", consumed)) >= 0:
            raw = buf[consumed:end]
            consumed = end + 1
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            if raw:
                self._process_line(raw.decode(WIRE_CODEC))
        return consumed

    def on_closed(self) -> None:
        self.keepalive.stop()
        self._report_gate_leaks()
        self._login_callbacks.clear()
        self._state.reset()
        logger.log_event("irc", "closed", nick=self.nick)
        if self.on_disconnect is not None:
            self.on_disconnect(self)

    def _process_line(self, line: str) -> None:
        try:
            message = parse(line)
        except MalformedMessage as e:
            log_error("Malformed inbound line", e, {"line": line})
            return
        self.keepalive.activity()
        logger.log_event(
            "irc", "raw", level=logging.DEBUG, nick=self.nick, raw=line
        )
        try:
            self.incoming(message)
        except Exception as e:  # noqa: BLE001
            log_error(
                "Failed to dispatch inbound message",
                e,
                {"command": message.command, "line": line},
            )

    def incoming(self, message: Message) -> Hints:
        return self.dispatcher.incoming(message)

    # Outbound

    def send_message(
        self, message: Message | str, prefix: str | None = None, *args: str
    ) -> None:
        """Send a Message, or build one from ``command, prefix, *args``.

        Only the built form applies the configured text encoder.
        """
        self._state.require_connected()
        if not isinstance(message, Message):
            message = self._build_outbound(message, prefix, args)
        line = message.to_line()
        try:
            data = (line + "\r\n").encode(WIRE_CODEC)
        except UnicodeEncodeError as e:
            raise InvalidOutboundMessage(
                "Message is not representable on the wire; configure an encoding",
                data={"command": message.command},
            ) from e
        self.write(data)

    def _build_outbound(
        self, command: str, prefix: str | None, args: tuple[str, ...]
    ) -> Message:
        arglist = list(args)
        encoder = self._encoder
        if encoder is not None:
            index = text_arg_index(command)
            if index is not None and -len(arglist) <= index < len(arglist):
                text = arglist[index]
                if text is not None:
                    try:
                        arglist[index] = encoder.encode(text).decode(WIRE_CODEC)
                    except UnicodeEncodeError as e:
                        raise InvalidOutboundMessage(
                            "Text is not representable in the configured encoding",
                            data={"command": command},
                        ) from e
        return Message(command, prefix, tuple(arglist))

    def send_ctcp(self, target: str, verb: str, argstr: str = "") -> None:
        self.send_message("PRIVMSG", None, target, _ctcp_frame(verb, argstr))

    def send_ctcpreply(self, target: str, verb: str, argstr: str = "") -> None:
        self.send_message("NOTICE", None, target, _ctcp_frame(verb, argstr))

    def login(
        self,
        nick: str | None = None,
        user: str | None = None,
        realname: str | None = None,
        password: str | None = None,
        on_login: LoginCallback | None = None,
    ) -> None:
        """Send the registration sequence; ``on_login`` runs once on ``001``."""
        nick = nick or self.nick or self.config.nick
        if not nick:
            raise InvalidOutboundMessage("A nick is required to log in")
        user = user or self.config.user
        realname = realname or self.config.realname
        password = password if password is not None else self.config.password

        if self.nick is None:
            self._set_nick(nick)
        if on_login is not None:
            self._login_callbacks.append(on_login)

        if password is not None:
            self.send_message("PASS", None, password)
        self.send_message("USER", None, user, "0", "*", realname)
        self.send_message("NICK", None, nick)
        logger.log_event("irc", "login_sent", nick=nick, user=user)

    def change_nick(self, new_nick: str) -> None:
        """Change nick now when offline, otherwise ask the server."""
        if not self.is_connected:
            self._set_nick(new_nick)
        else:
            self.send_message("NICK", None, new_nick)

    # Helpers

    def casefold_name(self, name: str | None) -> str | None:
        return self._isupport.casefold(name)

    def classify_name(self, name: str) -> str:
        return self._isupport.classify(name)

    def cmp_prefix_flags(self, lhs: str | None, rhs: str | None) -> int | None:
        return self._isupport.cmp_prefix_flags(lhs, rhs)

    def cmp_prefix_modes(self, lhs: str | None, rhs: str | None) -> int | None:
        return self._isupport.cmp_prefix_modes(lhs, rhs)

    def prefix_mode2flag(self, mode: str) -> str | None:
        return self._isupport.prefix_mode2flag(mode)

    def prefix_flag2mode(self, flag: str) -> str | None:
        return self._isupport.prefix_flag2mode(flag)

    def isupport_value(self, key: str) -> str | bool | None:
        return self._isupport.get(key)

    def server_info(self, key: str) -> str | None:
        return self._server_info.get(key)

    # Registration

    def register(self, event: str, handler: Handler) -> Handler:
        return self.registry.register(event, handler, HandlerSlot.CALLBACK)

    def register_generic(self, handler: Handler) -> Handler:
        return self.registry.register_generic(handler, HandlerSlot.CALLBACK)

    def on(self, event: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``register``."""

        def decorator(handler: Handler) -> Handler:
            return self.register(event, handler)

        return decorator

    # Built-in handlers

    def _register_builtin_handlers(self) -> None:
        method = HandlerSlot.METHOD
        self.registry.register("NICK", self._on_nick, method)
        self.registry.register("001", self._on_welcome, method)
        self.registry.register("004", self._on_myinfo, method)
        self.registry.register("005", self._on_isupport, method)
        self.registry.register("PONG", self._on_pong, method)
        self.registry.register("PRIVMSG", self._on_text, method)
        self.registry.register("NOTICE", self._on_text, method)
        for command in GATE_DISPOSITIONS:
            self.registry.register(command, self._on_gate_reply, method)

    def _on_nick(self, name: str, message: Message, hints: Hints) -> bool:
        if hints["prefix_is_me"] and hints.get("new_nick"):
            old_nick = self.nick
            self._set_nick(hints["new_nick"])
            logger.log_event("irc", "nick_changed", nick=self.nick, old_nick=old_nick)
            return True
        return False

    def _on_welcome(self, name: str, message: Message, hints: Hints) -> bool:
        if self._state.logged_in():
            logger.log_event("irc", "logged_in", nick=self.nick)
            callbacks, self._login_callbacks = self._login_callbacks, []
            for callback in callbacks:
                callback(self)
        # Leave the welcome for user handlers
        return False

    def _on_myinfo(self, name: str, message: Message, hints: Hints) -> bool:
        self._server_info.update(
            host=hints.get("serverhost"),
            version=hints.get("serverversion"),
            usermodes=hints.get("usermodes"),
            channelmodes=hints.get("channelmodes"),
        )
        return False

    def _on_isupport(self, name: str, message: Message, hints: Hints) -> bool:
        applied = self._isupport.apply(hints.get("isupport") or [])
        if "CASEMAPPING" in applied and self.nick is not None:
            self.nick_folded = self._isupport.casefold(self.nick)
        if applied:
            logger.log_event(
                "irc", "isupport", level=logging.DEBUG, keys=sorted(applied)
            )
        return False

    def _on_pong(self, name: str, message: Message, hints: Hints) -> bool:
        return self.keepalive.pong_received() is not None

    def _on_text(self, name: str, message: Message, hints: Hints) -> bool:
        return dispatch_text(self.dispatcher, name, message, hints)

    def _on_gate_reply(self, name: str, message: Message, hints: Hints) -> bool:
        disposition = gate_disposition(name)
        if disposition is None:
            return False
        op, gate_name = disposition
        gate = GATES[gate_name]
        target_key = gate.target_key(hints)
        if op == "+":
            for record in gate.records(hints, self._isupport):
                self.gates.append(gate_name, target_key, record)
            return True
        records = self.gates.flush(gate_name, target_key)
        payload = gate.payload(records, self._isupport)
        return self.dispatcher.dispatch_synthesized(gate_name, message, hints, payload)

    # Internals

    def _set_nick(self, nick: str) -> None:
        self.nick = nick
        self.nick_folded = self._isupport.casefold(nick)

    def _send_ping(self, payload: str) -> None:
        self.send_message("PING", None, payload)

    def _pong_reply(self, lag: float) -> None:
        if self.on_pong_reply is not None:
            self.on_pong_reply(self, lag)

    def _ping_timeout(self) -> None:
        if self.on_ping_timeout is not None:
            self.on_ping_timeout(self)

    def _report_gate_leaks(self) -> None:
        pending = self.gates.pending()
        if pending:
            logger.log_event(
                "irc",
                "gate_leak",
                level=logging.WARNING,
                nick=self.nick,
                gates=[f"{gate}:{target}" for gate, target in pending],
            )
        self.gates.clear()


def _ctcp_frame(verb: str, argstr: str) -> str:
    body = f"{verb} {argstr}" if argstr else verb
    return f"\x01{body}\x01"
