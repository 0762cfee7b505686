"""IRC protocol engine package."""

from .arg_names import ARG_NAMES, GATE_DISPOSITIONS, arg_names, gate_disposition, named_args
from .async_irc import AsyncIRC
from .client import IRCClient
from .connection import ConnectionState, ConnectionStateMachine
from .dispatcher import HintDispatcher
from .gates import GATES, GateBuffer
from .health import IRCHealthMonitor
from .heartbeat import Keepalive
from .isupport import CaseMapping, ChannelModeGroups, ISupport
from .message import Message, build, parse, serialize
from .modes import ModeChange, ModeType, parse_channel_modes
from .protocols import ClientBehaviour, TextEncoder, Timer
from .registry import HandlerRegistry, HandlerSlot
from .text import dispatch_text, prepare_text_hints
from .timers import AsyncioTimer, NullTimer

__all__ = [
    "ARG_NAMES",
    "AsyncIRC",
    "AsyncioTimer",
    "CaseMapping",
    "ChannelModeGroups",
    "ClientBehaviour",
    "ConnectionState",
    "ConnectionStateMachine",
    "GATES",
    "GATE_DISPOSITIONS",
    "GateBuffer",
    "HandlerRegistry",
    "HandlerSlot",
    "HintDispatcher",
    "IRCClient",
    "IRCHealthMonitor",
    "ISupport",
    "Keepalive",
    "Message",
    "NullTimer",
    "ModeChange",
    "ModeType",
    "TextEncoder",
    "Timer",
    "arg_names",
    "build",
    "dispatch_text",
    "gate_disposition",
    "named_args",
    "parse",
    "parse_channel_modes",
    "prepare_text_hints",
    "serialize",
]
