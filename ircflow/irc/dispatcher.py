"""Hint enrichment and the staged handler chain."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from ..constants import WIRE_CODEC
from ..errors import log_error
from ..logs.logger import logger
from .message import Message
from .modes import parse_channel_modes
from .protocols import ClientBehaviour
from .registry import Handler, HandlerRegistry, HandlerSlot
from .text import prepare_text_hints

Hints = dict[str, Any]
PrepareStep = Callable[[str, Message, Hints], None]

_SLOTS = (HandlerSlot.CALLBACK, HandlerSlot.METHOD)


class HintDispatcher:
    """Builds the hint map for each inbound Message and runs its handlers.

    A chain has up to four stages: per-event callbacks, per-event methods,
    generic callbacks, generic methods. Every stage runs; any handler returning
    a true value marks the hints ``handled``.
    """

    def __init__(
        self, client: ClientBehaviour, registry: HandlerRegistry | None = None
    ) -> None:
        self.client = client
        self.registry = registry or HandlerRegistry()
        self._prepare: dict[str, PrepareStep] = {
            "MODE": self._prepare_mode,
            "324": self._prepare_channelmode,
            "PRIVMSG": self._prepare_text,
            "NOTICE": self._prepare_text,
        }

    def build_hints(self, message: Message) -> Hints:
        client = self.client
        isupport = client.isupport
        nick, user, host = message.prefix_split()
        hints: Hints = {
            "handled": False,
            "prefix_nick": nick,
            "prefix_user": user,
            "prefix_host": host,
            "prefix_name": nick if nick is not None else host,
            "prefix_is_me": nick is not None and client.is_nick_me(nick),
        }
        hints.update(message.named_args())

        encoder = client.encoder
        if encoder is not None and isinstance(hints.get("text"), str):
            hints["text"] = encoder.decode(hints["text"].encode(WIRE_CODEC))

        target_name = hints.get("target_name")
        if isinstance(target_name, str):
            target_type = isupport.classify(target_name)
            hints["target_type"] = target_type
            hints["target_is_me"] = target_type == "user" and client.is_nick_me(
                target_name
            )

        prepare = self._prepare.get(message.command)
        if prepare is not None:
            prepare(message.command, message, hints)

        for key in [k for k in hints if k.endswith(("_nick", "_name"))]:
            value = hints[key]
            hints[f"{key}_folded"] = (
                isupport.casefold(value) if isinstance(value, str) else None
            )
        return hints

    def incoming(self, message: Message) -> Hints:
        hints = self.build_hints(message)

        if message.command == "PING":
            try:
                self.client.send_message(Message("PONG", None, message.args))
                hints["handled"] = True
            except Exception as e:  # noqa: BLE001
                log_error("Failed to answer PING", e, {"args": " ".join(message.args)})

        self.run_chain([(message.command, message.command)], message.command, message, hints)
        return hints

    def run_chain(
        self,
        stages: Sequence[tuple[str, str]],
        generic_name: str,
        message: Message,
        hints: Hints,
    ) -> bool:
        """Run ``(event, name)`` stages, then the generic handlers.

        Each handler is called as ``handler(name, message, hints)``.
        """
        registry = self.registry
        for event, name in stages:
            for slot in _SLOTS:
                found, handlers = registry.lookup(event, slot)
                if found:
                    self._run_handlers(handlers, slot, name, message, hints)
        for slot in _SLOTS:
            found, handlers = registry.lookup_generic(slot)
            if found:
                self._run_handlers(handlers, slot, generic_name, message, hints)
        return bool(hints.get("handled"))

    def dispatch_synthesized(
        self, event: str, message: Message, hints: Hints, detail: Any
    ) -> bool:
        synth = dict(hints)
        synth["synthesized"] = True
        synth["handled"] = False
        synth[event] = detail
        return self.run_chain([(event, event)], event, message, synth)

    def _run_handlers(
        self,
        handlers: list[Handler],
        slot: HandlerSlot,
        name: str,
        message: Message,
        hints: Hints,
    ) -> None:
        for handler in handlers:
            if slot is HandlerSlot.METHOD:
                result = self._call_builtin_handler(handler, name, message, hints)
            else:
                result = self._call_user_handler(handler, name, message, hints)
            if result:
                hints["handled"] = True

    @staticmethod
    def _call_builtin_handler(
        handler: Handler, name: str, message: Message, hints: Hints
    ) -> Any:
        try:
            return handler(name, message, hints)
        except Exception as e:  # noqa: BLE001
            log_error(
                "Built-in handler failed",
                e,
                {"event": name, "command": message.command},
            )
            return False

    @staticmethod
    def _call_user_handler(
        handler: Handler, name: str, message: Message, hints: Hints
    ) -> Any:
        try:
            return handler(name, message, hints)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "irc",
                "handler_error",
                level=logging.ERROR,
                event=name,
                handler=getattr(handler, "__qualname__", repr(handler)),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def _prepare_mode(self, command: str, message: Message, hints: Hints) -> None:
        if hints.get("target_type") == "channel":
            self._prepare_channelmode(command, message, hints)

    def _prepare_channelmode(
        self, command: str, message: Message, hints: Hints
    ) -> None:
        hints["modes"] = parse_channel_modes(
            hints.get("modechars") or "",
            hints.get("modeargs") or [],
            self.client.isupport,
        )

    def _prepare_text(self, command: str, message: Message, hints: Hints) -> None:
        prepare_text_hints(
            command, hints, self.client.isupport, self.client.is_nick_me
        )
