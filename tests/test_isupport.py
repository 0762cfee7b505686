from unittest.mock import patch

import pytest

from ircflow.irc import isupport as isupport_module
from ircflow.irc.isupport import CaseMapping, ChannelModeGroups, ISupport

SAMPLES = ["FOO[AWAY]", "user^name", "Mixed\\Case~", "plain", "", "#Chan{|}"]


class TestDefaults:
    def test_rfc2812_defaults(self):
        isupport = ISupport()
        assert isupport.chantypes == "#&"
        assert isupport.prefix_modes == "ov"
        assert isupport.prefix_flags == "@+"
        assert isupport.chanmodes.as_tuple() == ("b", "k", "l", "imnpst")
        assert isupport.casemapping is CaseMapping.RFC1459

    def test_classify(self):
        isupport = ISupport()
        assert isupport.classify("#chan") == "channel"
        assert isupport.classify("&local") == "channel"
        assert isupport.classify("SomeNick") == "user"
        assert isupport.classify("") == "user"

    def test_instances_are_independent(self):
        first, second = ISupport(), ISupport()
        first.apply(["CHANTYPES=!", "PREFIX=(qo)~@"])
        assert second.chantypes == "#&"
        assert second.prefix_flags == "@+"


class TestCasefold:
    def test_rfc1459(self):
        isupport = ISupport()
        assert isupport.casefold("FOO[AWAY]") == "foo{away}"
        assert isupport.casefold("user^name") == "user~name"

    def test_strict_rfc1459(self):
        isupport = ISupport()
        isupport.apply(["CASEMAPPING=strict-rfc1459"])
        assert isupport.casefold("user^name") == "user^name"
        assert isupport.casefold("FOO[AWAY]") == "foo{away}"

    def test_ascii(self):
        isupport = ISupport()
        isupport.apply(["CASEMAPPING=ascii"])
        assert isupport.casefold("FOO[AWAY]") == "foo[away]"

    def test_unknown_mapping_falls_back_to_rfc1459(self):
        isupport = ISupport()
        isupport.apply(["CASEMAPPING=rfc7613"])
        assert isupport.casemapping is CaseMapping.RFC1459

    def test_non_ascii_letters_untouched(self):
        assert ISupport().casefold("ÀBC") == "Àbc"

    def test_none(self):
        assert ISupport().casefold(None) is None

    @pytest.mark.parametrize("mapping", ["ascii", "rfc1459", "strict-rfc1459"])
    def test_idempotent(self, mapping):
        isupport = ISupport()
        isupport.apply([f"CASEMAPPING={mapping}"])
        for sample in SAMPLES:
            once = isupport.casefold(sample)
            assert isupport.casefold(once) == once


class TestPrefix:
    @pytest.fixture
    def isupport(self):
        isupport = ISupport()
        isupport.apply(["PREFIX=(ohv)@%+"])
        return isupport

    def test_maps(self, isupport):
        assert isupport.prefix_mode2flag("h") == "%"
        assert isupport.prefix_flag2mode("@") == "o"
        assert isupport.prefix_mode2flag("x") is None

    def test_cmp_prefix_flags(self, isupport):
        assert isupport.cmp_prefix_flags("@", "%") > 0
        assert isupport.cmp_prefix_flags("%", "@") < 0
        assert isupport.cmp_prefix_flags("%", "%") == 0
        assert isupport.cmp_prefix_flags("@", "!") is None
        assert isupport.cmp_prefix_flags("!", "@") is None

    def test_cmp_prefix_flags_empty(self, isupport):
        assert isupport.cmp_prefix_flags("", "") == 0
        assert isupport.cmp_prefix_flags("+", "") > 0
        assert isupport.cmp_prefix_flags("", "+") < 0

    def test_cmp_prefix_modes(self, isupport):
        assert isupport.cmp_prefix_modes("o", "v") > 0
        assert isupport.cmp_prefix_modes("v", "h") < 0
        assert isupport.cmp_prefix_modes("x", "o") is None

    def test_split_prefix_flags(self, isupport):
        assert isupport.split_prefix_flags("@+nick") == ("@+", "nick")
        assert isupport.split_prefix_flags("nick") == ("", "nick")

    @pytest.mark.parametrize("value", ["(ov)@", "ov@+", "(o)@+"])
    def test_malformed_prefix_keeps_previous(self, isupport, value):
        with patch.object(isupport_module.logger, "log_event") as log_event:
            applied = isupport.apply([f"PREFIX={value}", "CHANTYPES=#"])
        assert applied == {"CHANTYPES"}
        assert isupport.prefix_modes == "ohv"
        assert isupport.prefix_flags == "@%+"
        assert isupport.chantypes == "#"
        assert log_event.call_args.args[:2] == ("isupport", "unparsable")


class TestApply:
    def test_chanmodes(self):
        isupport = ISupport()
        isupport.apply(["CHANMODES=beI,k,l,imnpstr"])
        assert isupport.chanmodes == ChannelModeGroups("beI", "k", "l", "imnpstr")

    def test_chanmodes_padded_and_truncated(self):
        assert ChannelModeGroups.from_value("b,k").as_tuple() == ("b", "k", "", "")
        assert ChannelModeGroups.from_value("a,b,c,d,e").as_tuple() == ("a", "b", "c", "d")

    def test_unknown_keys_stored_verbatim(self):
        isupport = ISupport()
        applied = isupport.apply(["NETWORK=Example", "EXCEPTS"])
        assert applied == {"NETWORK", "EXCEPTS"}
        assert isupport.get("NETWORK") == "Example"
        assert isupport.get("EXCEPTS") is True
        assert "NETWORK" in isupport
        assert isupport.get("MISSING") is None

    def test_later_values_overwrite(self):
        isupport = ISupport()
        isupport.apply(["NICKLEN=9"])
        isupport.apply(["NICKLEN=30"])
        assert isupport.get("NICKLEN") == "30"

    def test_negation_restores_default(self):
        isupport = ISupport()
        isupport.apply(["CHANTYPES=#", "NETWORK=Example"])
        applied = isupport.apply(["-CHANTYPES", "-NETWORK"])
        assert applied == {"CHANTYPES", "NETWORK"}
        assert isupport.chantypes == "#&"
        assert isupport.get("NETWORK") is None

    def test_invalid_token_is_ignored(self):
        isupport = ISupport()
        assert isupport.apply(["lower=case", "=x", "MODES=4"]) == {"MODES"}

    def test_empty_chantypes_means_no_channels(self):
        isupport = ISupport()
        isupport.apply(["CHANTYPES="])
        assert isupport.classify("#chan") == "user"
