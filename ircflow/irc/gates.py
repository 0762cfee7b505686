"""Multi-line reply aggregation ("gates").

Replies such as NAMES, WHO, the ban list and the MOTD arrive as a run of
partial numerics closed by a terminal numeric. Partial records are buffered
per (gate, target) and handed over in one piece when the terminal arrives.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .isupport import ISupport

Hints = dict[str, Any]


class GateBuffer:
    """Ordered partial records keyed by ``(gate, target_key)``."""

    def __init__(self) -> None:
        self._buffers: dict[tuple[str, str], list[Any]] = {}

    def append(self, list_name: str, target_key: str, record: Any) -> None:
        self._buffers.setdefault((list_name, target_key), []).append(record)

    def flush(self, list_name: str, target_key: str) -> list[Any]:
        return self._buffers.pop((list_name, target_key), [])

    def pending(self) -> list[tuple[str, str]]:
        return list(self._buffers)

    def clear(self) -> None:
        self._buffers.clear()

    def __len__(self) -> int:
        return len(self._buffers)


def _motd_records(hints: Hints, isupport: ISupport) -> list[Any]:
    text = hints.get("text")
    return [text] if text is not None else []


def _motd_payload(records: list[Any], isupport: ISupport) -> list[str]:
    return list(records)


def _names_records(hints: Hints, isupport: ISupport) -> list[Any]:
    return list(hints.get("names") or [])


def _names_payload(records: list[Any], isupport: ISupport) -> dict[str, dict[str, str]]:
    names: dict[str, dict[str, str]] = {}
    for entry in records:
        flags, nick = isupport.split_prefix_flags(entry)
        # Multi-prefix servers list every flag, highest first
        names[isupport.casefold(nick)] = {"nick": nick, "flag": flags[:1]}
    return names


_WHO_FIELDS = (
    "user_ident",
    "user_host",
    "user_server",
    "user_nick",
    "user_nick_folded",
    "user_flags",
)


def _who_records(hints: Hints, isupport: ISupport) -> list[Any]:
    return [{key: hints.get(key) for key in _WHO_FIELDS}]


def _bans_records(hints: Hints, isupport: ISupport) -> list[Any]:
    return [
        {
            "mask": hints.get("mask"),
            "by_nick": hints.get("by_nick"),
            "by_nick_folded": hints.get("by_nick_folded"),
            "timestamp": hints.get("timestamp"),
        }
    ]


def _as_list(records: list[Any], isupport: ISupport) -> list[Any]:
    return list(records)


@dataclass(frozen=True, slots=True)
class Gate:
    name: str
    per_target: bool
    records: Callable[[Hints, "ISupport"], list[Any]]
    payload: Callable[[list[Any], "ISupport"], Any]

    def target_key(self, hints: Hints) -> str:
        if not self.per_target:
            return ""
        return hints.get("target_name_folded") or ""


GATES: Mapping[str, Gate] = {
    "motd": Gate("motd", False, _motd_records, _motd_payload),
    "names": Gate("names", True, _names_records, _names_payload),
    "who": Gate("who", True, _who_records, _as_list),
    "bans": Gate("bans", True, _bans_records, _as_list),
}
