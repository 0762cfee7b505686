import pytest

from ircflow.irc.isupport import ISupport
from ircflow.irc.message import parse
from ircflow.irc.text import prepare_text_hints


def _prepare(command, targets, text, nick="Me"):
    isupport = ISupport()
    hints = {"targets": targets, "text": text}
    prepare_text_hints(command, hints, isupport, lambda n: n == nick)
    return hints


class TestPrepareTextHints:
    def test_channel_message(self):
        hints = _prepare("PRIVMSG", "#chan", "hello")
        assert "targets" not in hints
        assert hints["target_name"] == "#chan"
        assert hints["target_type"] == "channel"
        assert hints["target_is_me"] is False
        assert hints["is_notice"] is False
        assert "restriction" not in hints
        assert "ctcp_verb" not in hints

    def test_restricted_channel_message(self):
        hints = _prepare("NOTICE", "@#chan", "ops only")
        assert hints["restriction"] == "@"
        assert hints["target_name"] == "#chan"
        assert hints["target_type"] == "channel"
        assert hints["is_notice"] is True

    def test_private_message_to_me(self):
        hints = _prepare("PRIVMSG", "Me", "psst")
        assert hints["target_type"] == "user"
        assert hints["target_is_me"] is True

    @pytest.mark.parametrize(
        "text,verb,args",
        [
            ("\x01VERSION\x01", "VERSION", ""),
            ("\x01ACTION waves hello\x01", "ACTION", "waves hello"),
            ("\x01PING 12345\x01", "PING", "12345"),
        ],
    )
    def test_ctcp_split(self, text, verb, args):
        hints = _prepare("PRIVMSG", "Me", text)
        assert hints["ctcp_verb"] == verb
        assert hints["ctcp_args"] == args

    def test_unterminated_ctcp_is_text(self):
        assert "ctcp_verb" not in _prepare("PRIVMSG", "Me", "\x01VERSION")


class TestTextEvents:
    def test_text_event(self, harness):
        seen = []
        harness.client.register("text", lambda name, msg, hints: seen.append((name, hints)))
        harness.feed(":Bob!u@h PRIVMSG #chan :hello there")
        ((name, hints),) = seen
        assert name == "text"
        assert hints["synthesized"] is True
        assert hints["text"] == "hello there"
        assert hints["target_name"] == "#chan"
        assert hints["target_name_folded"] == "#chan"
        assert hints["prefix_nick"] == "Bob"

    def test_handled_text_marks_raw_command_handled(self, harness):
        harness.client.register("text", lambda name, msg, hints: True)
        hints = harness.client.incoming(parse(":Bob!u@h PRIVMSG #chan :hi"))
        assert hints["handled"] is True

    def test_unhandled_text_leaves_raw_command_unhandled(self, harness):
        hints = harness.client.incoming(parse(":Bob!u@h PRIVMSG #chan :hi"))
        assert hints["handled"] is False

    def test_restriction_reaches_handlers(self, harness):
        seen = []
        harness.client.register("text", lambda name, msg, hints: seen.append(hints))
        harness.feed(":Op!u@h NOTICE @#chan :ops only")
        assert seen[0]["restriction"] == "@"
        assert seen[0]["is_notice"] is True

    def test_private_text_to_me(self, harness):
        seen = []
        harness.client.register("text", lambda name, msg, hints: seen.append(hints))
        harness.feed(":Bob!u@h PRIVMSG me :psst")
        assert seen[0]["target_is_me"] is True
        assert seen[0]["target_type"] == "user"

    def test_ctcp_chain(self, harness):
        calls = []
        client = harness.client
        client.register("ctcp_VERSION", lambda name, msg, hints: calls.append(("specific", name)))
        client.register("ctcp", lambda name, msg, hints: calls.append(("ctcp", name)))
        client.register("text", lambda name, msg, hints: calls.append(("text", name)))
        client.register_generic(lambda name, msg, hints: calls.append(("generic", name)))
        harness.feed(":Bob!u@h PRIVMSG Me :\x01VERSION\x01")
        assert calls == [
            ("specific", "ctcp_VERSION"),
            ("ctcp", "VERSION"),
            ("generic", "ctcp VERSION"),
            ("generic", "PRIVMSG"),
        ]

    def test_ctcpreply_chain(self, harness):
        seen = []
        harness.client.register("ctcpreply", lambda name, msg, hints: seen.append((name, hints)))
        harness.feed(":Bob!u@h NOTICE Me :\x01VERSION Example 1.0\x01")
        ((name, hints),) = seen
        assert name == "VERSION"
        assert hints["ctcp_args"] == "Example 1.0"
        assert hints["is_notice"] is True

    def test_ctcp_does_not_fire_text(self, harness):
        seen = []
        harness.client.register("text", lambda name, msg, hints: seen.append(name))
        harness.feed(":Bob!u@h PRIVMSG Me :\x01ACTION waves\x01")
        assert seen == []


class TestSendCtcp:
    def test_send_ctcp(self, harness):
        harness.client.send_ctcp("Bob", "VERSION")
        assert harness.wire.lines == ["PRIVMSG Bob \x01VERSION\x01"]

    def test_send_ctcpreply(self, harness):
        harness.client.send_ctcpreply("Bob", "VERSION", "ircflow 0.1")
        assert harness.wire.lines == ["NOTICE Bob :\x01VERSION ircflow 0.1\x01"]

    def test_answer_ctcp_from_handler(self, harness):
        @harness.client.on("ctcp_PING")
        def pong(name, msg, hints):
            harness.client.send_ctcpreply(hints["prefix_nick"], "PING", hints["ctcp_args"])
            return True

        harness.feed(":Bob!u@h PRIVMSG Me :\x01PING 42\x01")
        assert harness.wire.lines == ["NOTICE Bob :\x01PING 42\x01"]
