"""Tests for the structured event logger."""

import io
import logging

import pytest

from ircflow.logs.logger import ProtocolLogger


@pytest.fixture
def make_logger():
    created = []

    def factory(**kwargs):
        log = ProtocolLogger("ircflow.test", **kwargs)
        created.append(log)
        return log

    yield factory
    for log in created:
        for handler in log.logger.handlers:
            handler.close()
        log.logger.handlers.clear()


def _messages(caplog):
    return [r.getMessage() for r in caplog.records if r.name == "ircflow.test"]


def test_template_is_rendered(make_logger, caplog):
    with caplog.at_level(logging.INFO):
        make_logger().log_event("irc", "connect_start", server="irc.example.com", port=6667)
    (record,) = [r for r in caplog.records if r.name == "ircflow.test"]
    assert record.levelno == logging.INFO
    assert "Connecting to irc.example.com:6667" in record.getMessage()


def test_missing_template_field_falls_back_to_raw_template(make_logger, caplog):
    with caplog.at_level(logging.INFO):
        make_logger().log_event("irc", "connect_start")
    assert "Connecting to {server}:{port}" in _messages(caplog)[0]


def test_unknown_event_derives_text(make_logger, caplog):
    with caplog.at_level(logging.INFO):
        make_logger().log_event("custom_area", "thing_happened")
    assert "custom area: thing happened" in _messages(caplog)[0]


def test_explicit_human_text_wins(make_logger, caplog):
    with caplog.at_level(logging.INFO):
        make_logger().log_event("irc", "closed", human="Bye now")
    (message,) = _messages(caplog)
    assert "Bye now" in message
    assert "Connection closed" not in message


def test_nick_and_target_prefix(make_logger, caplog):
    with caplog.at_level(logging.INFO):
        make_logger().log_event("irc", "closed", nick="Me", target="#chan")
    assert _messages(caplog)[0].startswith("[Me>#chan ")


def test_prefix_without_nick(make_logger, caplog):
    with caplog.at_level(logging.INFO):
        make_logger().log_event("irc", "closed")
    assert _messages(caplog)[0].startswith("[*")


def test_debug_events_hidden_by_default(make_logger, caplog, monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    log = make_logger()
    log.log_event("irc", "raw", level=logging.DEBUG, raw="PING x")
    assert _messages(caplog) == []


def test_debug_mode_adds_event_name_and_context(make_logger, caplog, monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    with caplog.at_level(logging.DEBUG):
        make_logger().log_event("irc", "raw", level=logging.DEBUG, raw="PING x")
    (message,) = _messages(caplog)
    assert message.startswith("irc_raw ")
    assert "<< PING x" in message
    assert "raw='PING x'" in message


def test_set_level(make_logger, caplog):
    log = make_logger()
    log.set_level(logging.ERROR)
    with caplog.at_level(logging.INFO):
        log.log_event("irc", "closed")
    assert _messages(caplog) == []


def test_stream_handler_uses_colorlog(make_logger):
    stream = io.StringIO()
    log = make_logger(stream=stream)
    log.logger.propagate = False
    try:
        log.log_event("irc", "closed", level=logging.WARNING, nick="Me")
    finally:
        log.logger.propagate = True
    output = stream.getvalue()
    assert "WARNING" in output
    assert "Connection closed" in output


def test_log_file(make_logger, tmp_path):
    path = tmp_path / "irc.log"
    log = make_logger(log_file=str(path))
    log.log_event("irc", "closed", nick="Me")
    for handler in log.logger.handlers:
        handler.flush()
    assert "Connection closed" in path.read_text()
