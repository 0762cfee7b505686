import asyncio
import time

import pytest
from freezegun import freeze_time

from ircflow.irc.heartbeat import Keepalive
from ircflow.irc.message import parse
from ircflow.irc.timers import AsyncioTimer
from tests.fixtures.irc_fixtures import FakeClock, FakeTimer


@pytest.fixture
def parts():
    return FakeTimer(), FakeTimer(), [], FakeClock()


def _keepalive(parts, **kwargs):
    ping_timer, pong_timer, sent, clock = parts
    return Keepalive(
        ping_timer, pong_timer, sent.append, pingtime=60, pongtime=10, clock=clock, **kwargs
    )


class TestKeepalive:
    def test_start_arms_ping_timer(self, parts):
        keepalive = _keepalive(parts)
        keepalive.start()
        ping_timer = parts[0]
        assert ping_timer.duration == 60
        assert keepalive.last_activity == 1000.0

    def test_activity_restarts_idle_timer(self, parts):
        ping_timer, _, _, clock = parts
        keepalive = _keepalive(parts)
        keepalive.start()
        clock.advance(30)
        keepalive.activity()
        assert ping_timer.starts == 2
        assert keepalive.last_activity == 1030.0

    def test_ping_then_pong(self, parts):
        ping_timer, pong_timer, sent, clock = parts
        keepalive = _keepalive(parts)
        lags = []
        keepalive.on_pong_reply = lags.append
        keepalive.start()
        ping_timer.fire()
        assert sent == ["1000"]
        assert pong_timer.duration == 10
        assert keepalive.ping_outstanding

        clock.advance(1.5)
        assert keepalive.pong_received() == 1.5
        assert lags == [1.5]
        assert keepalive.last_lag == 1.5
        assert not keepalive.ping_outstanding

    def test_stray_pong_is_ignored(self, parts):
        keepalive = _keepalive(parts)
        keepalive.on_pong_reply = pytest.fail
        keepalive.start()
        assert keepalive.pong_received() is None
        assert keepalive.last_lag is None

    def test_timeout_calls_hook_without_disconnecting(self, parts):
        ping_timer, pong_timer, _, clock = parts
        keepalive = _keepalive(parts)
        timeouts = []
        keepalive.on_ping_timeout = lambda: timeouts.append(True)
        keepalive.start()
        ping_timer.fire()
        clock.advance(10)
        pong_timer.fire()
        assert timeouts == [True]
        assert not keepalive.ping_outstanding
        # a late PONG no longer counts
        assert keepalive.pong_received() is None

    def test_stop_disarms_both_timers(self, parts):
        ping_timer, pong_timer, _, _ = parts
        keepalive = _keepalive(parts)
        keepalive.start()
        ping_timer.fire()
        keepalive.stop()
        assert not ping_timer.is_running()
        assert not pong_timer.is_running()
        assert keepalive.ping_sent_at is None

    def test_ping_payload_is_wall_clock_seconds(self):
        ping_timer, pong_timer, sent = FakeTimer(), FakeTimer(), []
        with freeze_time("2024-01-01 00:00:00"):
            keepalive = Keepalive(ping_timer, pong_timer, sent.append, clock=time.time)
            keepalive.start()
            ping_timer.fire()
        assert sent == ["1704067200"]


class TestClientKeepalive:
    def test_ping_cycle(self, harness):
        lags = []
        harness.client.on_pong_reply = lambda client, lag: lags.append((client, lag))
        harness.ping_timer.fire()
        assert harness.wire.lines == ["PING 1000"]

        harness.clock.advance(2.5)
        hints = harness.client.incoming(parse(":srv PONG srv :1000"))
        assert hints["handled"] is True
        assert lags == [(harness.client, 2.5)]

    def test_inbound_line_restarts_idle_timer(self, harness):
        starts = harness.ping_timer.starts
        harness.feed(":Bob!u@h JOIN #c")
        assert harness.ping_timer.starts == starts + 1

    def test_malformed_line_does_not_count_as_activity(self, harness):
        starts = harness.ping_timer.starts
        harness.feed(":prefix.only")
        assert harness.ping_timer.starts == starts

    def test_timeout_hook_receives_client(self, harness):
        timeouts = []
        harness.client.on_ping_timeout = timeouts.append
        harness.ping_timer.fire()
        harness.pong_timer.fire()
        assert timeouts == [harness.client]
        assert harness.client.is_connected

    def test_close_stops_timers(self, harness):
        harness.ping_timer.fire()
        harness.client.on_closed()
        assert not harness.ping_timer.is_running()
        assert not harness.pong_timer.is_running()


class TestAsyncioTimer:
    @pytest.mark.asyncio
    async def test_fires_once(self):
        fired = asyncio.Event()
        timer = AsyncioTimer()
        timer.start(0.01, fired.set)
        assert timer.is_running()
        await asyncio.wait_for(fired.wait(), timeout=1)
        assert not timer.is_running()

    @pytest.mark.asyncio
    async def test_stop_cancels(self):
        calls = []
        timer = AsyncioTimer()
        timer.start(0.01, lambda: calls.append(1))
        timer.stop()
        await asyncio.sleep(0.05)
        assert calls == []
        assert not timer.is_running()

    @pytest.mark.asyncio
    async def test_restart_replaces_pending_callback(self):
        calls = []
        timer = AsyncioTimer()
        timer.start(0.01, lambda: calls.append("first"))
        timer.start(0.01, lambda: calls.append("second"))
        await asyncio.sleep(0.05)
        assert calls == ["second"]
