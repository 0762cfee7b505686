"""Explicit handler table used by the dispatcher."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

Handler = Callable[[str, Any, dict[str, Any]], Any]


class HandlerSlot(Enum):
    """Who installed a handler.

    ``CALLBACK`` entries belong to the user of the client; ``METHOD`` entries
    are the client's own built-in behaviour. Within a stage callbacks run
    before methods.
    """

    CALLBACK = "callback"
    METHOD = "method"


class HandlerRegistry:
    def __init__(self) -> None:
        self._specific: dict[HandlerSlot, dict[str, list[Handler]]] = {
            slot: {} for slot in HandlerSlot
        }
        self._generic: dict[HandlerSlot, list[Handler]] = {
            slot: [] for slot in HandlerSlot
        }

    def register(
        self, event: str, handler: Handler, slot: HandlerSlot = HandlerSlot.CALLBACK
    ) -> Handler:
        self._specific[slot].setdefault(event, []).append(handler)
        return handler

    def register_generic(
        self, handler: Handler, slot: HandlerSlot = HandlerSlot.CALLBACK
    ) -> Handler:
        self._generic[slot].append(handler)
        return handler

    def unregister(self, event: str, handler: Handler) -> bool:
        removed = False
        for table in self._specific.values():
            handlers = table.get(event)
            if handlers and handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del table[event]
                removed = True
        return removed

    def unregister_generic(self, handler: Handler) -> bool:
        removed = False
        for handlers in self._generic.values():
            if handler in handlers:
                handlers.remove(handler)
                removed = True
        return removed

    def lookup(self, event: str, slot: HandlerSlot) -> tuple[bool, list[Handler]]:
        handlers = self._specific[slot].get(event)
        if not handlers:
            return False, []
        return True, list(handlers)

    def lookup_generic(self, slot: HandlerSlot) -> tuple[bool, list[Handler]]:
        handlers = self._generic[slot]
        return bool(handlers), list(handlers)

