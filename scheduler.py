"""
Clocks and frame schedulers for the tracking engine.

Components never read the system time or schedule frames directly; they are
handed a clock (a callable returning milliseconds) and a frame scheduler.
Production wires the monotonic clock and an asyncio-backed scheduler, tests
use the manual variants and advance time explicitly.
"""

import asyncio
import itertools
import time
from typing import Callable, Dict, Optional

from constants import FRAME_INTERVAL_MS


FrameCallback = Callable[[], None]


class MonotonicClock:
    """Milliseconds from an arbitrary fixed point, never goes backwards."""

    def __call__(self) -> float:
        return time.monotonic() * 1000.0


class WallClock:
    """Milliseconds since the Unix epoch."""

    def __call__(self) -> float:
        return time.time() * 1000.0


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = float(start_ms)

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> float:
        self.now_ms += ms
        return self.now_ms


class FrameScheduler:
    """Requests one callback per display frame, like requestAnimationFrame.

    Subclasses return an opaque handle from request_frame that can be
    passed to cancel_frame.
    """

    def request_frame(self, callback: FrameCallback) -> int:
        raise NotImplementedError

    def cancel_frame(self, handle: int) -> None:
        raise NotImplementedError


class ManualFrameScheduler(FrameScheduler):
    """Frame scheduler driven by explicit run_frame() calls.

    Optionally advances a ManualClock by one frame interval per frame so
    that time-based animations make progress.
    """

    def __init__(self, clock: Optional[ManualClock] = None,
                 frame_interval_ms: float = FRAME_INTERVAL_MS):
        self.clock = clock
        self.frame_interval_ms = frame_interval_ms
        self._pending: Dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        """Number of callbacks waiting for the next frame."""
        return len(self._pending)

    def run_frame(self) -> int:
        """Advance one frame and run every callback queued before it.

        Callbacks requested while running belong to the next frame.

        Returns:
            Number of callbacks executed
        """
        if self.clock is not None:
            self.clock.advance(self.frame_interval_ms)

        due = self._pending
        self._pending = {}
        for callback in due.values():
            callback()
        return len(due)

    def run_until_idle(self, max_frames: int = 10000) -> int:
        """Run frames until nothing is pending.

        Returns:
            Number of frames run
        """
        frames = 0
        while self._pending and frames < max_frames:
            self.run_frame()
            frames += 1
        return frames


class AsyncioFrameScheduler(FrameScheduler):
    """Frame scheduler on an asyncio event loop at a fixed frame rate."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None,
                 frame_interval_ms: float = FRAME_INTERVAL_MS):
        self._loop = loop
        self.frame_interval_ms = frame_interval_ms
        self._handles: Dict[int, asyncio.TimerHandle] = {}
        self._ids = itertools.count(1)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)

        def _run():
            self._handles.pop(handle, None)
            callback()

        self._handles[handle] = self.loop.call_later(
            self.frame_interval_ms / 1000.0, _run
        )
        return handle

    def cancel_frame(self, handle: int) -> None:
        timer = self._handles.pop(handle, None)
        if timer is not None:
            timer.cancel()

    @property
    def pending(self) -> int:
        """Number of frame timers armed on the loop."""
        return len(self._handles)
