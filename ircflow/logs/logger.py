"""Structured event logger for the protocol engine.

Events are identified by ``(domain, action)``; the human text comes from the
template catalog unless given explicitly. ``nick`` and ``target`` keyword
arguments render as a fixed-width ``[nick>target]`` prefix so lines from one
connection line up. With DEBUG set, the event name and the remaining keyword
arguments are appended.
"""

from __future__ import annotations

import logging
import os
from typing import TextIO

import colorlog

from ..logging_config import LOG_COLORS

EVENT_NAME_WIDTH = 32
PREFIX_WIDTH = 24


class ProtocolLogger:
    def __init__(
        self,
        name: str = "ircflow",
        log_file: str | None = None,
        *,
        stream: TextIO | None = None,
    ) -> None:
        """Without ``stream`` or ``log_file`` records only propagate to the root logger."""
        self.logger = logging.getLogger(name)
        self.log_file = log_file
        self.logger.setLevel(logging.DEBUG if self._is_debug_enabled() else logging.INFO)

        if stream is not None:
            handler = logging.StreamHandler(stream)
            handler.setFormatter(
                colorlog.ColoredFormatter(
                    "%(log_color)s%(levelname)-8s%(reset)s %(message)s", log_colors=LOG_COLORS
                )
            )
            self.logger.addHandler(handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(file_handler)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if human is None:
            human, derived = self._render_template(domain, action, kwargs)
            if derived:
                kwargs.setdefault("derived", True)
        event_name = f"{domain}_{action}".lower()
        nick = kwargs.pop("nick", None)
        target = kwargs.pop("target", None)
        prefix = self._build_prefix(
            nick if isinstance(nick, str) else None,
            target if isinstance(target, str) else None,
        )
        if self._is_debug_enabled():
            msg = self._build_debug_message(event_name, prefix, human, kwargs)
        else:
            msg = f"{prefix} {human or event_name}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _render_template(domain: str, action: str, kwargs: dict[str, object]) -> tuple[str, bool]:
        # Imported late: the catalog is (re)loaded at import of the logs package.
        from .event_catalog import EVENT_TEMPLATES

        template = EVENT_TEMPLATES.get((domain, action))
        if template is None:
            return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}", True
        try:
            return template.format(**kwargs), False
        except (KeyError, IndexError, ValueError):
            return template, False

    @staticmethod
    def _is_debug_enabled() -> bool:
        return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    @staticmethod
    def _build_prefix(nick: str | None, target: str | None) -> str:
        core = f"{nick or '*'}>{target}" if target else (nick or "*")
        return f"[{core.ljust(PREFIX_WIDTH)[:PREFIX_WIDTH]}]"

    @staticmethod
    def _build_debug_message(
        event_name: str,
        prefix: str,
        human_text: str | None,
        kwargs: dict[str, object],
    ) -> str:
        if len(event_name) > EVENT_NAME_WIDTH:
            event_name = event_name[: EVENT_NAME_WIDTH - 1] + "…"
        parts = [event_name.ljust(EVENT_NAME_WIDTH), prefix]
        if human_text:
            parts.append(human_text)
        if kwargs:
            parts.append("(" + ", ".join(f"{k}={v!r}" for k, v in kwargs.items()) + ")")
        return " ".join(parts)


logger = ProtocolLogger()
