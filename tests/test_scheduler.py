"""
Tests for clocks and frame schedulers.

Covers the manual scheduler used throughout the suite and the asyncio
scheduler that drives the interpolator in a running event loop.
"""

import asyncio

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from interpolator import PositionInterpolator, RawFix
from scheduler import AsyncioFrameScheduler, ManualClock, ManualFrameScheduler, MonotonicClock
from conftest import BRISBANE, offset_point


def _fix(point):
    return RawFix(lat=point[0], lng=point[1])


class TestManualFrameScheduler:
    """Tests for the explicitly driven scheduler."""

    def test_run_frame_advances_clock(self):
        clock = ManualClock(0.0)
        scheduler = ManualFrameScheduler(clock, frame_interval_ms=20.0)
        calls = []
        scheduler.request_frame(lambda: calls.append(clock()))

        assert scheduler.run_frame() == 1
        assert calls == [20.0]
        assert scheduler.pending == 0

    def test_cancelled_frame_never_runs(self):
        scheduler = ManualFrameScheduler()
        calls = []
        handle = scheduler.request_frame(lambda: calls.append(1))
        scheduler.cancel_frame(handle)
        scheduler.cancel_frame(handle)

        assert scheduler.run_until_idle() == 0
        assert calls == []


class TestAsyncioFrameScheduler:
    """Tests for the event loop scheduler driving a real animation."""

    def test_retarget_keeps_one_timer_and_close_clears_it(self):
        """Retargeting mid-flight replaces the armed frame; close disarms it."""
        emitted = []

        async def scenario():
            scheduler = AsyncioFrameScheduler()
            interp = PositionInterpolator(
                on_position=emitted.append, clock=MonotonicClock(),
                scheduler=scheduler, duration_ms=100,
            )
            interp.update_position(_fix(BRISBANE))
            assert scheduler.pending == 0

            interp.update_position(_fix(offset_point(*BRISBANE, meters_north=30.0)))
            assert scheduler.pending == 1

            await asyncio.sleep(0.05)
            interp.update_position(_fix(offset_point(*BRISBANE, meters_east=30.0)))
            assert scheduler.pending == 1

            interp.close()
            assert scheduler.pending == 0
            count = len(emitted)

            await asyncio.sleep(0.1)
            return count

        count = asyncio.run(scenario())
        assert count > 1
        assert len(emitted) == count

    def test_animation_completes_on_loop(self):
        target = offset_point(*BRISBANE, meters_north=40.0)

        async def scenario():
            scheduler = AsyncioFrameScheduler()
            interp = PositionInterpolator(clock=MonotonicClock(), scheduler=scheduler, duration_ms=100)
            interp.update_position(_fix(BRISBANE))
            interp.update_position(_fix(target))
            await asyncio.sleep(0.4)
            return interp, scheduler

        interp, scheduler = asyncio.run(scenario())
        assert not interp.is_interpolating
        assert scheduler.pending == 0
        assert interp.current_position.lat == target[0]
        assert interp.current_position.lng == target[1]

    def test_cancel_unknown_handle_is_noop(self):
        async def scenario():
            scheduler = AsyncioFrameScheduler()
            scheduler.cancel_frame(42)
            return scheduler.pending

        assert asyncio.run(scenario()) == 0
