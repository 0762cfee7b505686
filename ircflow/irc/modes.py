"""Channel MODE change-string parsing."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from .isupport import ISupport


class ModeType(Enum):
    LIST = "list"
    VALUE = "value"
    BOOL = "bool"
    OCCUPANT = "occupant"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ModeChange:
    mode: str
    sense: str
    type: ModeType
    value: str | None = None
    nick: str | None = None
    nick_folded: str | None = None
    flag: str | None = None


def parse_channel_modes(
    modechars: str, modeargs: Sequence[str], isupport: ISupport
) -> list[ModeChange]:
    """Translate ``+o-k Nick key`` style changes into typed records.

    Records come back in scan order. ``sense`` is ``""`` until the first
    ``+``/``-`` is seen; argument-taking modes without an explicit sense (as in
    ``324 RPL_CHANNELMODEIS`` replies without a sign) consume nothing.
    """
    groups = isupport.chanmodes
    args = iter(modeargs)
    sense = ""
    changes: list[ModeChange] = []

    for mode in modechars:
        if mode in "+-":
            sense = mode
            continue

        if mode in groups.list_modes:
            value = next(args, None) if sense else None
            changes.append(ModeChange(mode, sense, ModeType.LIST, value=value))
        elif mode in groups.value_modes:
            value = next(args, None) if sense else None
            changes.append(ModeChange(mode, sense, ModeType.VALUE, value=value))
        elif mode in groups.value_on_set_modes:
            value = next(args, None) if sense == "+" else None
            changes.append(ModeChange(mode, sense, ModeType.VALUE, value=value))
        elif mode in groups.bool_modes:
            changes.append(ModeChange(mode, sense, ModeType.BOOL))
        elif (flag := isupport.prefix_mode2flag(mode)) is not None:
            nick = next(args, None) if sense else None
            changes.append(
                ModeChange(
                    mode,
                    sense,
                    ModeType.OCCUPANT,
                    nick=nick,
                    nick_folded=isupport.casefold(nick),
                    flag=flag,
                )
            )
        else:
            logger.log_event(
                "irc", "mode_unknown", level=logging.DEBUG, mode=mode, sense=sense
            )
            changes.append(ModeChange(mode, sense, ModeType.UNKNOWN))

    return changes
