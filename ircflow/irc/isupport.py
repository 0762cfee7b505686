"""ISUPPORT-derived connection state.

Holds the values advertised by the server in ``005 RPL_ISUPPORT`` together
with the lookup structures derived from them (prefix maps, channel mode
groups, channel-name test and case mapping). Every connection owns its own
instance; the RFC 2812 defaults are applied at construction.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ..errors import UnparsableISUPPORT
from ..logs.logger import logger

_TOKEN_RE = re.compile(r"^(-?)([A-Z0-9]+)(?:=(.*))?$")
_PREFIX_VALUE_RE = re.compile(r"^\(([A-Za-z]*)\)(\S*)$")

DEFAULT_CHANTYPES = "#&"
DEFAULT_PREFIX_MODES = "ov"
DEFAULT_PREFIX_FLAGS = "@+"


class CaseMapping(Enum):
    ASCII = "ascii"
    RFC1459 = "rfc1459"
    STRICT_RFC1459 = "strict-rfc1459"

    @classmethod
    def from_value(cls, value: str) -> CaseMapping:
        value = value.lower()
        if value == "ascii":
            return cls.ASCII
        if value == "strict-rfc1459":
            return cls.STRICT_RFC1459
        # RFC 1459 unless we're told otherwise
        return cls.RFC1459


_ASCII_UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_ASCII_LOWER = "abcdefghijklmnopqrstuvwxyz"

_FOLD_TABLES: dict[CaseMapping, dict[int, int]] = {
    CaseMapping.ASCII: str.maketrans(_ASCII_UPPER + "^", _ASCII_LOWER + "~"),
    CaseMapping.RFC1459: str.maketrans(_ASCII_UPPER + "[\\]^", _ASCII_LOWER + "{|}~"),
    CaseMapping.STRICT_RFC1459: str.maketrans(_ASCII_UPPER + "[\\]", _ASCII_LOWER + "{|}"),
}


@dataclass(frozen=True, slots=True)
class ChannelModeGroups:
    """The four ``CHANMODES`` groups, in the order the server lists them."""

    list_modes: str = "b"
    value_modes: str = "k"
    value_on_set_modes: str = "l"
    bool_modes: str = "imnpst"

    @classmethod
    def from_value(cls, value: str) -> ChannelModeGroups:
        groups = (value.split(",") + ["", "", "", ""])[:4]
        return cls(*groups)

    def as_tuple(self) -> tuple[str, str, str, str]:
        return (self.list_modes, self.value_modes, self.value_on_set_modes, self.bool_modes)


class ISupport:
    def __init__(self) -> None:
        self._values: dict[str, str | bool] = {}
        self._set_prefix(DEFAULT_PREFIX_MODES, DEFAULT_PREFIX_FLAGS)
        self.chanmodes = ChannelModeGroups()
        self.chantypes = DEFAULT_CHANTYPES
        self.casemapping = CaseMapping.RFC1459

    def _set_prefix(self, modes: str, flags: str) -> None:
        self.prefix_modes = modes
        self.prefix_flags = flags
        self.mode_to_flag: dict[str, str] = dict(zip(modes, flags, strict=True))
        self.flag_to_mode: dict[str, str] = dict(zip(flags, modes, strict=True))

    def get(self, key: str) -> str | bool | None:
        return self._values.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def apply(self, tokens: Iterable[str]) -> set[str]:
        """Apply ``KEY``, ``KEY=VALUE`` and ``-KEY`` tokens one at a time.

        Returns the set of keys that took effect. A malformed token is logged
        and skipped without affecting the tokens applied before or after it.
        """
        applied: set[str] = set()
        for token in tokens:
            m = _TOKEN_RE.match(token)
            if not m:
                logger.log_event(
                    "isupport", "token_ignored", level=logging.DEBUG, token=token
                )
                continue
            negate, key, value = m.groups()
            try:
                if negate:
                    self._remove(key)
                else:
                    self._set(key, True if value is None else value)
            except UnparsableISUPPORT as e:
                logger.log_event(
                    "isupport",
                    "unparsable",
                    level=logging.WARNING,
                    key=key,
                    value=value,
                    error=str(e),
                )
                continue
            applied.add(key)
        return applied

    def _set(self, key: str, value: str | bool) -> None:
        text = value if isinstance(value, str) else ""
        if key == "PREFIX":
            m = _PREFIX_VALUE_RE.match(text)
            if not m:
                raise UnparsableISUPPORT(
                    "PREFIX value has no (modes) group", data={"value": value}
                )
            modes, flags = m.groups()
            if len(modes) != len(flags):
                raise UnparsableISUPPORT(
                    "PREFIX modes and flags differ in length", data={"value": value}
                )
            self._set_prefix(modes, flags)
        elif key == "CHANMODES":
            self.chanmodes = ChannelModeGroups.from_value(text)
        elif key == "CASEMAPPING":
            self.casemapping = CaseMapping.from_value(text)
        elif key == "CHANTYPES":
            self.chantypes = text
        self._values[key] = value

    def _remove(self, key: str) -> None:
        self._values.pop(key, None)
        if key == "PREFIX":
            self._set_prefix(DEFAULT_PREFIX_MODES, DEFAULT_PREFIX_FLAGS)
        elif key == "CHANMODES":
            self.chanmodes = ChannelModeGroups()
        elif key == "CASEMAPPING":
            self.casemapping = CaseMapping.RFC1459
        elif key == "CHANTYPES":
            self.chantypes = DEFAULT_CHANTYPES

    def casefold(self, name: str | None) -> str | None:
        """Fold ``name`` so equal names compare equal under the server's rules."""
        if name is None:
            return None
        return name.translate(_FOLD_TABLES[self.casemapping])

    def is_channel(self, name: str | None) -> bool:
        return bool(name) and bool(self.chantypes) and name[0] in self.chantypes

    def classify(self, name: str) -> str:
        return "channel" if self.is_channel(name) else "user"

    def prefix_mode2flag(self, mode: str) -> str | None:
        return self.mode_to_flag.get(mode)

    def prefix_flag2mode(self, flag: str) -> str | None:
        return self.flag_to_mode.get(flag)

    def split_prefix_flags(self, name: str) -> tuple[str, str]:
        """Split the leading run of prefix flags off ``name``."""
        i = 0
        while i < len(name) and name[i] in self.flag_to_mode:
            i += 1
        return name[:i], name[i:]

    def cmp_prefix_flags(self, lhs: str | None, rhs: str | None) -> int | None:
        """Compare occupant flags; higher privilege compares greater.

        The empty flag (no privilege) sorts below every declared flag. Returns
        ``None`` when either side is not a declared flag.
        """
        if lhs is None or rhs is None:
            return None
        if lhs == "" and rhs == "":
            return 0
        if rhs == "":
            return 1
        if lhs == "":
            return -1
        return _cmp_positions(self.prefix_flags, lhs, rhs)

    def cmp_prefix_modes(self, lhs: str | None, rhs: str | None) -> int | None:
        if lhs is None or rhs is None:
            return None
        return _cmp_positions(self.prefix_modes, lhs, rhs)


def _cmp_positions(declared: str, lhs: str, rhs: str) -> int | None:
    if len(lhs) != 1 or len(rhs) != 1:
        return None
    lhs_index = declared.find(lhs)
    rhs_index = declared.find(rhs)
    if lhs_index < 0 or rhs_index < 0:
        return None
    # Servers list these greatest-first, so the ordering is swapped
    return (rhs_index > lhs_index) - (rhs_index < lhs_index)
