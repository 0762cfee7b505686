from unittest.mock import patch

import pytest

from ircflow.irc import modes as modes_module
from ircflow.irc.isupport import ISupport
from ircflow.irc.modes import ModeChange, ModeType, parse_channel_modes


@pytest.fixture
def isupport():
    return ISupport()


def test_mixed_change_string(isupport):
    isupport.apply(["PREFIX=(ohv)@%+"])
    changes = parse_channel_modes("+shl", ["HalfOp", "123"], isupport)
    assert changes == [
        ModeChange("s", "+", ModeType.BOOL),
        ModeChange(
            "h",
            "+",
            ModeType.OCCUPANT,
            nick="HalfOp",
            nick_folded="halfop",
            flag="%",
        ),
        ModeChange("l", "+", ModeType.VALUE, value="123"),
    ]


def test_list_and_value_modes_take_arguments_both_ways(isupport):
    changes = parse_channel_modes("+b-k", ["*!*@spam", "secret"], isupport)
    assert changes == [
        ModeChange("b", "+", ModeType.LIST, value="*!*@spam"),
        ModeChange("k", "-", ModeType.VALUE, value="secret"),
    ]


def test_value_on_set_mode_takes_no_argument_when_unset(isupport):
    changes = parse_channel_modes("-l+o", ["Bob"], isupport)
    assert changes[0] == ModeChange("l", "-", ModeType.VALUE)
    assert changes[1].nick == "Bob"
    assert changes[1].flag == "@"


def test_occupant_nick_is_folded(isupport):
    (change,) = parse_channel_modes("-v", ["Some[Guy]"], isupport)
    assert change.type is ModeType.OCCUPANT
    assert change.nick == "Some[Guy]"
    assert change.nick_folded == "some{guy}"
    assert change.flag == "+"


def test_unknown_mode_consumes_no_argument(isupport):
    with patch.object(modes_module.logger, "log_event") as log_event:
        changes = parse_channel_modes("+Zo", ["Bob"], isupport)
    assert changes[0] == ModeChange("Z", "+", ModeType.UNKNOWN)
    assert changes[1].nick == "Bob"
    log_event.assert_called_once()
    assert log_event.call_args.args[:2] == ("irc", "mode_unknown")


def test_unsigned_modes_consume_nothing(isupport):
    # 324 replies may omit the sign
    changes = parse_channel_modes("nt", [], isupport)
    assert changes == [
        ModeChange("n", "", ModeType.BOOL),
        ModeChange("t", "", ModeType.BOOL),
    ]


def test_missing_arguments_become_none(isupport):
    changes = parse_channel_modes("+ok", ["Alice"], isupport)
    assert changes[0].nick == "Alice"
    assert changes[1] == ModeChange("k", "+", ModeType.VALUE, value=None)


def test_custom_chanmodes(isupport):
    isupport.apply(["CHANMODES=beI,k,fl,imnpstr"])
    changes = parse_channel_modes("+If", ["*!*@trusted", "10:5"], isupport)
    assert [(c.mode, c.type, c.value) for c in changes] == [
        ("I", ModeType.LIST, "*!*@trusted"),
        ("f", ModeType.VALUE, "10:5"),
    ]
