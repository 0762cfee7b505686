"""PRIVMSG / NOTICE specialisation: restriction markers and CTCP."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .message import Message

if TYPE_CHECKING:  # pragma: no cover
    from .dispatcher import HintDispatcher
    from .isupport import ISupport

_CTCP_RE = re.compile(r"^\x01(.*)\x01$", re.DOTALL)


def prepare_text_hints(
    command: str,
    hints: dict[str, Any],
    isupport: ISupport,
    is_nick_me: Callable[[str | None], bool],
) -> None:
    """Turn the raw ``targets`` field into a classified ``target_name``.

    A leading run of prefix flags on the target (``@#chan`` reaches only the
    channel operators) is moved into ``restriction``.
    """
    targets = hints.pop("targets", None) or ""
    restriction, target_name = isupport.split_prefix_flags(targets)
    if restriction:
        hints["restriction"] = restriction

    target_type = isupport.classify(target_name)
    hints["target_name"] = target_name
    hints["target_type"] = target_type
    hints["target_is_me"] = target_type == "user" and is_nick_me(target_name)
    hints["is_notice"] = command == "NOTICE"

    text = hints.get("text")
    if isinstance(text, str):
        m = _CTCP_RE.match(text)
        if m:
            verb, _, args = m.group(1).partition(" ")
            hints["ctcp_verb"] = verb
            hints["ctcp_args"] = args


def dispatch_text(
    dispatcher: HintDispatcher, command: str, message: Message, hints: dict[str, Any]
) -> bool:
    """Run the synthesized ``text`` / ``ctcp`` / ``ctcpreply`` event.

    Returns whether any handler claimed it, so the raw command can be marked
    handled as well.
    """
    synth = dict(hints)
    synth["synthesized"] = True
    synth["handled"] = False

    verb = synth.get("ctcp_verb")
    if verb is not None:
        event = "ctcpreply" if command == "NOTICE" else "ctcp"
        return dispatcher.run_chain(
            [(f"{event}_{verb}", f"{event}_{verb}"), (event, verb)],
            f"{event} {verb}",
            message,
            synth,
        )

    return dispatcher.run_chain([("text", "text")], "text", message, synth)
