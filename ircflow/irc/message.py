"""IRC message parsing and serialization."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidOutboundMessage, MalformedMessage
from .arg_names import gate_disposition, named_args

_COMMAND_RE = re.compile(r"^(?:[A-Z]+|\d{3})$")
_PREFIX_RE = re.compile(r"^:([^ ]+) +")
_FINAL_RE = re.compile(r" +:")
_USERMASK_RE = re.compile(r"^(.*?)!(.*?)@(.*)$")
_WHITESPACE_RE = re.compile(r"[ \t\r\n]")
_LINEFEED_RE = re.compile(r"[\r\n]")

_TAG_UNESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}
_TAG_ESCAPES = {";": "\\:", " ": "\\s", "\\": "\\\\", "\r": "\\r", "\n": "\\n"}


@dataclass(frozen=True, slots=True)
class Message:
    """One protocol line.

    ``command`` is stored upper-cased. Construction validates every wire
    invariant and raises :class:`InvalidOutboundMessage` on violation, so a
    Message that exists can always be written out and parsed back unchanged.
    """

    command: str
    prefix: str | None = None
    args: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.command, str):
            raise InvalidOutboundMessage("Command must be a string")
        command = self.command.upper()
        if not _COMMAND_RE.match(command):
            raise InvalidOutboundMessage(
                "Command must be just letters or three digits",
                data={"command": self.command},
            )
        object.__setattr__(self, "command", command)

        if self.prefix is not None and (
            not self.prefix or _WHITESPACE_RE.search(self.prefix)
        ):
            raise InvalidOutboundMessage(
                "Prefix must not be empty or contain whitespace",
                data={"prefix": self.prefix},
            )

        args = tuple(self.args)
        for i, arg in enumerate(args):
            if arg is None:
                raise InvalidOutboundMessage(
                    "Argument must be defined", data={"command": command, "index": i}
                )
            if not isinstance(arg, str):
                raise InvalidOutboundMessage(
                    "Argument must be a string", data={"command": command, "index": i}
                )
        for i, arg in enumerate(args[:-1]):
            if _WHITESPACE_RE.search(arg):
                raise InvalidOutboundMessage(
                    "Argument must not contain whitespace",
                    data={"command": command, "index": i},
                )
            if not arg or arg.startswith(":"):
                raise InvalidOutboundMessage(
                    "Only the final argument may be empty or start with ':'",
                    data={"command": command, "index": i},
                )
        if args and _LINEFEED_RE.search(args[-1]):
            raise InvalidOutboundMessage(
                "Final argument must not contain a linefeed",
                data={"command": command},
            )
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "tags", dict(self.tags or {}))

    @classmethod
    def from_line(cls, line: str) -> Message:
        return parse(line)

    def to_line(self) -> str:
        return serialize(self)

    def __str__(self) -> str:
        return self.to_line()

    def arg(self, index: int) -> str | None:
        """Positional argument, negative indices counting from the end."""
        if -len(self.args) <= index < len(self.args):
            return self.args[index]
        return None

    def prefix_split(self) -> tuple[str | None, str | None, str]:
        """Split ``nick!user@host``; server prefixes come back as the host."""
        prefix = self.prefix or ""
        m = _USERMASK_RE.match(prefix)
        if m:
            return m.group(1), m.group(2), m.group(3)
        return None, None, prefix

    def named_args(self) -> dict[str, Any]:
        return named_args(self)

    def gate_disposition(self) -> tuple[str, str] | None:
        return gate_disposition(self.command)


def parse(line: str) -> Message:
    """Parse one line (without its CRLF terminator) into a Message."""
    original = line
    tags: dict[str, str] = {}

    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = _parse_tags(tags_part[1:])
        line = line.lstrip(" ")

    prefix: str | None = None
    m = _PREFIX_RE.match(line)
    if m:
        prefix = m.group(1)
        line = line[m.end():]

    parts = _FINAL_RE.split(line, maxsplit=1)
    args = [a for a in parts[0].split(" ") if a]
    if len(parts) > 1:
        args.append(parts[1])

    if not args or not args[0]:
        raise MalformedMessage("Message has no command", line=original)
    command = args.pop(0)

    try:
        return Message(command, prefix, tuple(args), tags)
    except InvalidOutboundMessage as e:
        raise MalformedMessage(str(e), line=original) from e


def serialize(message: Message) -> str:
    """Render a Message back into wire form (without CRLF)."""
    parts: list[str] = []
    if message.tags:
        parts.append("@" + _format_tags(message.tags))
    if message.prefix is not None:
        parts.append(f":{message.prefix}")
    parts.append(message.command)
    if message.args:
        parts.extend(message.args[:-1])
        final = message.args[-1]
        if not final or " " in final or final.startswith(":"):
            final = f":{final}"
        parts.append(final)
    return " ".join(parts)


def build(command: str, prefix: str | None = None, *args: str) -> Message:
    return Message(command, prefix, tuple(args))


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        k, _, v = tag.partition("=")
        tags[k] = _unescape_tag_value(v)
    return tags


def _unescape_tag_value(value: str) -> str:
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            out.append(_TAG_UNESCAPES.get(nxt, nxt))
        else:
            out.append(ch)
    return "".join(out)


def _format_tags(tags: Mapping[str, str]) -> str:
    rendered: list[str] = []
    for k, v in tags.items():
        if v:
            escaped = "".join(_TAG_ESCAPES.get(ch, ch) for ch in v)
            rendered.append(f"{k}={escaped}")
        else:
            rendered.append(k)
    return ";".join(rendered)
