"""Unit tests for VirtualScheduler."""

from src.core.scheduler.virtual import VirtualScheduler
from tests.conftest import NOW


class TestVirtualScheduler:
    async def test_timers_fire_in_due_order(self):
        scheduler = VirtualScheduler(start=NOW)
        order = []
        scheduler.call_later(20, lambda: order.append("b"), name="b")
        scheduler.call_later(10, lambda: order.append("a"), name="a")

        await scheduler.advance(15)
        assert order == ["a"]
        assert scheduler.now() == NOW + 15

        await scheduler.advance(5)
        assert order == ["a", "b"]

    async def test_cancelled_timer_skipped(self):
        scheduler = VirtualScheduler(start=NOW)
        fired = []
        handle = scheduler.call_later(5, lambda: fired.append(1), name="t")

        handle.cancel()
        await scheduler.advance(10)

        assert fired == []
        assert handle.cancelled
        assert scheduler.pending == []

    async def test_run_every_repeats(self):
        scheduler = VirtualScheduler(start=NOW)
        ticks = []

        async def tick():
            ticks.append(scheduler.now())

        scheduler.run_every(10, tick, name="tick", initial_delay=5)
        await scheduler.advance(30)

        assert ticks == [NOW + 5, NOW + 15, NOW + 25]

    async def test_failing_callback_does_not_stop_clock(self):
        scheduler = VirtualScheduler(start=NOW)
        fired = []

        def boom():
            raise RuntimeError("boom")

        scheduler.call_later(1, boom, name="boom")
        scheduler.call_later(2, lambda: fired.append("after"), name="after")
        await scheduler.advance(3)

        assert fired == ["after"]
        assert scheduler.fired == ["boom", "after"]

    async def test_shutdown_clears_queue(self):
        scheduler = VirtualScheduler(start=NOW)
        scheduler.run_every(1, lambda: None, name="loop")

        await scheduler.shutdown()

        assert scheduler.pending == []
