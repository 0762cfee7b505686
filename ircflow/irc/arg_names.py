"""Per-command argument naming.

Maps positional arguments of each command (or numeric) onto semantic field
names. The table is written in a compact notation and compiled once at import:

  ``"pn"``    nick part of the message prefix
  ``"2"``     single argument index (negative counts from the end)
  ``"2.."``   inclusive range to the last argument, as a list
  ``"1..-2"`` inclusive range with a negative end bound, as a list
  ``"3@"``    argument(s) joined and split on whitespace into a list
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .message import Message


@dataclass(frozen=True, slots=True)
class PrefixNick:
    def resolve(self, message: Message) -> str | None:
        return message.prefix_split()[0]


@dataclass(frozen=True, slots=True)
class ArgIndex:
    index: int

    def resolve(self, message: Message) -> str | None:
        return message.arg(self.index)


@dataclass(frozen=True, slots=True)
class ArgRange:
    start: int
    end: int | None = None
    split: bool = False

    def resolve(self, message: Message) -> list[str]:
        args = message.args
        if self.end is None or self.end == -1:
            selected = list(args[self.start:])
        else:
            selected = list(args[self.start:self.end + 1])
        if self.split:
            return " ".join(selected).split()
        return selected


Descriptor = PrefixNick | ArgIndex | ArgRange

_RANGE_RE = re.compile(r"^(-?\d+)\.\.(-?\d+)?$")
_SPLIT_RE = re.compile(r"^(-?\d+)@$")
_INDEX_RE = re.compile(r"^-?\d+$")


def compile_descriptor(spec: str) -> Descriptor:
    if spec == "pn":
        return PrefixNick()
    if _INDEX_RE.match(spec):
        return ArgIndex(int(spec))
    m = _RANGE_RE.match(spec)
    if m:
        end = m.group(2)
        return ArgRange(int(m.group(1)), int(end) if end is not None else None)
    m = _SPLIT_RE.match(spec)
    if m:
        index = int(m.group(1))
        return ArgRange(index, index, split=True)
    raise ValueError(f"Unrecognised argument descriptor {spec!r}")


_WHOIS_USER = {"target_name": "1", "ident": "2", "host": "3", "realname": "-1"}
_ERROR_ON_TARGET = {"target_name": "1", "text": "-1"}
_ERROR_ON_NICK = {"nick": "1", "text": "-1"}
_MASK_LIST_ENTRY = {"target_name": "1", "mask": "2", "by_nick": "3", "timestamp": "4"}
_MASK_LIST_END = {"target_name": "1"}

_ARG_NAMES_SOURCE: dict[str, dict[str, str]] = {
    "ERROR": {"text": "-1"},
    "INVITE": {"inviter_nick": "pn", "invited_nick": "0", "target_name": "1"},
    "JOIN": {"target_name": "0"},
    "KICK": {"kicker_nick": "pn", "target_name": "0", "kicked_nick": "1", "text": "2"},
    "MODE": {"target_name": "0", "modechars": "1", "modeargs": "2.."},
    "NICK": {"old_nick": "pn", "new_nick": "0"},
    "NOTICE": {"targets": "0", "text": "1"},
    "PART": {"target_name": "0", "text": "1"},
    "PING": {"text": "-1"},
    "PONG": {"text": "-1"},
    "PRIVMSG": {"targets": "0", "text": "1"},
    "QUIT": {"text": "0"},
    "TOPIC": {"target_name": "0", "text": "1"},
    "001": {"text": "-1"},  # RPL_WELCOME
    "002": {"text": "-1"},  # RPL_YOURHOST
    "003": {"text": "-1"},  # RPL_CREATED
    "004": {  # RPL_MYINFO
        "serverhost": "1",
        "serverversion": "2",
        "usermodes": "3",
        "channelmodes": "4",
    },
    "005": {"isupport": "1..-2", "text": "-1"},  # RPL_ISUPPORT
    "301": {"target_name": "1", "text": "2"},  # RPL_AWAY
    "311": _WHOIS_USER,  # RPL_WHOISUSER
    "312": {"target_name": "1", "server": "2", "serverinfo": "3"},  # RPL_WHOISSERVER
    "313": {"target_name": "1", "text": "2"},  # RPL_WHOISOPERATOR
    "314": _WHOIS_USER,  # RPL_WHOWASUSER
    "315": {"target_name": "1"},  # RPL_ENDOFWHO
    "317": {"target_name": "1", "idle_time": "2"},  # RPL_WHOISIDLE
    "318": {"target_name": "1"},  # RPL_ENDOFWHOIS
    "319": {"target_name": "1", "channels": "2@"},  # RPL_WHOISCHANNELS
    "324": {"target_name": "1", "modechars": "2", "modeargs": "3.."},  # RPL_CHANNELMODEIS
    "329": {"target_name": "1", "timestamp": "2"},  # RPL_CREATIONTIME
    "330": {"target_name": "1", "whois_login": "2"},  # RPL_WHOISACCOUNT
    "331": {"target_name": "1"},  # RPL_NOTOPIC
    "332": {"target_name": "1", "text": "2"},  # RPL_TOPIC
    "333": {"target_name": "1", "setby_nick": "2", "timestamp": "3"},  # RPL_TOPICWHOTIME
    "341": {"target_name": "1", "invited_nick": "2"},  # RPL_INVITING
    "346": _MASK_LIST_ENTRY,  # RPL_INVITELIST
    "347": _MASK_LIST_END,  # RPL_ENDOFINVITELIST
    "348": _MASK_LIST_ENTRY,  # RPL_EXCEPTLIST
    "349": _MASK_LIST_END,  # RPL_ENDOFEXCEPTLIST
    "352": {  # RPL_WHOREPLY
        "target_name": "1",
        "user_ident": "2",
        "user_host": "3",
        "user_server": "4",
        "user_nick": "5",
        "user_flags": "6",
        "text": "7",
    },
    "353": {"target_name": "2", "names": "3@"},  # RPL_NAMREPLY
    "366": {"target_name": "1"},  # RPL_ENDOFNAMES
    "367": _MASK_LIST_ENTRY,  # RPL_BANLIST
    "368": _MASK_LIST_END,  # RPL_ENDOFBANLIST
    "369": {"target_name": "1"},  # RPL_ENDOFWHOWAS
    "372": {"text": "-1"},  # RPL_MOTD
    "375": {"text": "-1"},  # RPL_MOTDSTART
    "376": {"text": "-1"},  # RPL_ENDOFMOTD
    "401": _ERROR_ON_TARGET,  # ERR_NOSUCHNICK
    "402": _ERROR_ON_TARGET,  # ERR_NOSUCHSERVER
    "403": _ERROR_ON_TARGET,  # ERR_NOSUCHCHANNEL
    "404": _ERROR_ON_TARGET,  # ERR_CANNOTSENDTOCHAN
    "405": _ERROR_ON_TARGET,  # ERR_TOOMANYCHANNELS
    "406": _ERROR_ON_TARGET,  # ERR_WASNOSUCHNICK
    "408": _ERROR_ON_TARGET,  # ERR_NOSUCHSERVICE
    "421": {"command": "1", "text": "-1"},  # ERR_UNKNOWNCOMMAND
    "422": {"text": "-1"},  # ERR_NOMOTD
    "432": _ERROR_ON_NICK,  # ERR_ERRONEUSNICKNAME
    "433": _ERROR_ON_NICK,  # ERR_NICKNAMEINUSE
    "436": _ERROR_ON_NICK,  # ERR_NICKCOLLISION
    "437": _ERROR_ON_TARGET,  # ERR_UNAVAILRESOURCE
    "441": {"user_nick": "1", "target_name": "2", "text": "-1"},  # ERR_USERNOTINCHANNEL
    "442": _ERROR_ON_TARGET,  # ERR_NOTONCHANNEL
    "443": {"user_nick": "1", "target_name": "2", "text": "-1"},  # ERR_USERONCHANNEL
    "444": _ERROR_ON_TARGET,  # ERR_NOLOGIN
    "467": _ERROR_ON_TARGET,  # ERR_KEYSET
    "471": _ERROR_ON_TARGET,  # ERR_CHANNELISFULL
    "472": {"modechar": "1", "text": "-1"},  # ERR_UNKNOWNMODE
    "473": _ERROR_ON_TARGET,  # ERR_INVITEONLYCHAN
    "474": _ERROR_ON_TARGET,  # ERR_BANNEDFROMCHAN
    "475": _ERROR_ON_TARGET,  # ERR_BADCHANNELKEY
    "476": _ERROR_ON_TARGET,  # ERR_BADCHANMASK
    "477": _ERROR_ON_TARGET,  # ERR_NOCHANMODES
    "478": _ERROR_ON_TARGET,  # ERR_BANLISTFULL
    "482": _ERROR_ON_TARGET,  # ERR_CHANOPRIVSNEEDED
}

ARG_NAMES: MappingProxyType[str, MappingProxyType[str, Descriptor]] = MappingProxyType(
    {
        command: MappingProxyType(
            {name: compile_descriptor(spec) for name, spec in fields.items()}
        )
        for command, fields in _ARG_NAMES_SOURCE.items()
    }
)

_EMPTY: MappingProxyType[str, Descriptor] = MappingProxyType({})

# "+gate" appends a partial reply, "-gate" flushes on the terminal reply.
GATE_DISPOSITIONS: MappingProxyType[str, str] = MappingProxyType(
    {
        "352": "+who",
        "315": "-who",
        "353": "+names",
        "366": "-names",
        "367": "+bans",
        "368": "-bans",
        "375": "+motd",
        "372": "+motd",
        "376": "-motd",
        "422": "-motd",
    }
)


def arg_names(command: str) -> MappingProxyType[str, Descriptor]:
    return ARG_NAMES.get(command.upper(), _EMPTY)


def named_args(message: Message) -> dict[str, Any]:
    """Resolve the named fields of ``message``; unknown commands yield ``{}``."""
    return {
        name: descriptor.resolve(message)
        for name, descriptor in arg_names(message.command).items()
    }


def text_arg_index(command: str) -> int | None:
    """Index of the argument carrying free text, for outbound encoding."""
    descriptor = arg_names(command).get("text")
    if isinstance(descriptor, ArgIndex):
        return descriptor.index
    return None


def gate_disposition(command: str) -> tuple[str, str] | None:
    disposition = GATE_DISPOSITIONS.get(command)
    if disposition is None:
        return None
    return disposition[0], disposition[1:]
