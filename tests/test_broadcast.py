"""
Broadcast Channel Tests
=======================

Tests for throttling, replay and fan-out, driven by virtual time.
"""

import asyncio

import pytest

from collage_studio.broadcast import AsyncioScheduler, BroadcastChannel


def recorder(scheduler, log):
    """Subscriber callback recording (time, value)."""
    return lambda value: log.append((scheduler.now(), value))


class TestThrottle:
    """Tests for throttle-window coalescing."""

    def test_first_value_is_delivered_immediately(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        log = []
        channel.subscribe(recorder(scheduler, log))

        channel.publish("v1")

        assert log == [(0.0, "v1")]
        assert scheduler.pending == []

    def test_burst_is_coalesced_to_latest(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        log = []
        channel.subscribe(recorder(scheduler, log))

        channel.publish("v1")
        scheduler.advance(0.1)
        channel.publish("v2")
        scheduler.advance(0.1)
        channel.publish("v3")
        scheduler.advance(0.1)
        channel.publish("v4")

        assert log == [(0.0, "v1")]
        scheduler.advance(1.0)
        assert log == [(0.0, "v1"), (0.5, "v4")]
        assert channel.metrics()["coalesced"] == 2

    def test_deliveries_never_closer_than_window(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        log = []
        channel.subscribe(recorder(scheduler, log))

        for i in range(40):
            channel.publish(i)
            scheduler.advance(0.07)
        scheduler.advance(1.0)

        times = [t for t, _ in log]
        gaps = [b - a for a, b in zip(times, times[1:])]
        assert all(gap >= 0.5 - 1e-9 for gap in gaps)
        assert log[-1][1] == 39

    def test_order_is_preserved(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        log = []
        channel.subscribe(lambda v: log.append(v))

        for i in range(25):
            channel.publish(i)
            scheduler.advance(0.2)
        scheduler.advance(1.0)

        assert log == sorted(log)
        assert log[0] == 0 and log[-1] == 24

    def test_publish_after_quiet_window_is_immediate(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        log = []
        channel.subscribe(recorder(scheduler, log))

        channel.publish("v1")
        scheduler.advance(2.0)
        channel.publish("v2")

        assert log == [(0.0, "v1"), (2.0, "v2")]

    def test_idle_channel_schedules_nothing(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        log = []
        channel.subscribe(log.append)

        scheduler.advance(10.0)

        assert log == []
        assert scheduler.pending == []
        assert channel.metrics()["delivered"] == 0

    def test_negative_window_rejected(self, scheduler):
        with pytest.raises(ValueError):
            BroadcastChannel(window=-1, scheduler=scheduler)


class TestReplayAndFanOut:
    """Tests for replay depth 1 and multi-consumer delivery."""

    def test_late_subscriber_gets_latest_delivered(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        channel.publish("v1")
        scheduler.advance(0.6)
        channel.publish("v2")
        scheduler.advance(0.1)
        channel.publish("v3")

        late = []
        channel.subscribe(late.append)
        assert late == ["v2"]

        scheduler.advance(1.0)
        assert late == ["v2", "v3"]

    def test_no_replay_before_first_delivery(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        late = []
        channel.subscribe(late.append)
        assert late == []
        assert not channel.has_value

    def test_consumers_receive_identical_values(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        first, second = [], []
        channel.subscribe(first.append)
        channel.subscribe(second.append)

        for i in range(6):
            channel.publish(i)
            scheduler.advance(0.3)
        scheduler.advance(1.0)

        assert first == second
        assert len(first) == len(set(first))

    def test_disposed_subscriber_stops_receiving(self, scheduler):
        channel = BroadcastChannel(window=0.0, scheduler=scheduler)
        kept, dropped = [], []
        channel.subscribe(kept.append)
        subscription = channel.subscribe(dropped.append)

        channel.publish(1)
        subscription.dispose()
        channel.publish(2)

        assert kept == [1, 2]
        assert dropped == [1]
        assert not subscription.active
        assert channel.subscriber_count == 1

    def test_failing_subscriber_is_isolated(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        received = []

        def broken(value):
            raise RuntimeError("render failed")

        channel.subscribe(broken)
        channel.subscribe(received.append)
        channel.publish("v1")

        assert received == ["v1"]

    def test_close_cancels_pending_delivery(self, scheduler):
        channel = BroadcastChannel(window=0.5, scheduler=scheduler)
        received = []
        channel.subscribe(received.append)
        channel.publish("v1")
        channel.publish("v2")

        channel.close()
        scheduler.advance(1.0)
        channel.publish("v3")

        assert received == ["v1"]
        assert channel.closed
        assert channel.subscriber_count == 0


class TestAsyncioScheduler:
    """Throttling on a real event loop."""

    @pytest.mark.asyncio
    async def test_pending_value_delivered_after_window(self):
        channel = BroadcastChannel(window=0.05, scheduler=AsyncioScheduler())
        received = []
        channel.subscribe(received.append)

        channel.publish("v1")
        channel.publish("v2")
        channel.publish("v3")
        assert received == ["v1"]

        await asyncio.sleep(0.15)
        assert received == ["v1", "v3"]
