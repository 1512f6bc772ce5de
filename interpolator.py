"""
GPS position interpolator.

Sits between raw location fixes and everything that draws or reacts to the
vehicle position. Raw fixes arrive every second or so and jump; the
interpolator turns them into a smooth, eased stream of positions.

Key behaviour:
- The first fix is adopted immediately, no animation
- Fixes within ~1 m of the current position are GPS noise and dropped
- A new fix always wins: the running animation is cancelled and a new one
  starts from wherever the marker currently is
- At most one animation loop is scheduled at any time
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from constants import (
    INTERPOLATION_DURATION_MS,
    INTERPOLATION_MIN_DURATION_MS,
    INTERPOLATION_MAX_DURATION_MS,
    METERS_PER_KM,
    MIN_MOVEMENT_M,
)
from geodesy import distance, is_valid_coordinate
from scheduler import FrameScheduler, MonotonicClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFix:
    """A location fix as delivered by the device.

    Attributes:
        lat: Latitude in degrees
        lng: Longitude in degrees
        accuracy: Horizontal accuracy radius in meters, if known
        timestamp: Fix time in milliseconds since the epoch, if known
        speed: Ground speed in m/s, if the source reports it
    """
    lat: float
    lng: float
    accuracy: Optional[float] = None
    timestamp: Optional[float] = None
    speed: Optional[float] = None


@dataclass(frozen=True)
class SmoothedPosition:
    """A position emitted by the interpolator."""
    lat: float
    lng: float
    accuracy: Optional[float] = None
    timestamp: Optional[float] = None


PositionCallback = Callable[[SmoothedPosition], None]


class InterpolatorState(Enum):
    IDLE = "idle"
    TRACKING = "tracking"


def ease_out_cubic(progress: float) -> float:
    """Fast start, gentle arrival."""
    return 1 - (1 - progress) ** 3


def lerp(start: float, end: float, progress: float) -> float:
    return start + (end - start) * progress


class PositionInterpolator:
    """Smooths a stream of raw fixes into animated positions.

    Args:
        on_position: Called with every emitted position (initial + frames)
        clock: Callable returning milliseconds, used to measure progress
        scheduler: Frame scheduler driving the animation loop
        duration_ms: Length of one interpolation leg
        min_movement_m: Fixes closer than this to the current position are dropped
        on_accepted: Called once per accepted fix, as soon as it is adopted
            or becomes the new animation target. Dropped and invalid fixes
            never reach it.
    """

    def __init__(self, on_position: Optional[PositionCallback] = None,
                 clock: Optional[Callable[[], float]] = None,
                 scheduler: Optional[FrameScheduler] = None,
                 duration_ms: float = INTERPOLATION_DURATION_MS,
                 min_movement_m: float = MIN_MOVEMENT_M,
                 on_accepted: Optional[PositionCallback] = None):
        if scheduler is None:
            raise ValueError("PositionInterpolator requires a frame scheduler")

        self._on_position = on_position
        self._on_accepted = on_accepted
        self._clock = clock or MonotonicClock()
        self._scheduler = scheduler
        self._duration_ms = self._clamp_duration(duration_ms)
        self._min_movement_km = min_movement_m / METERS_PER_KM

        self._current: Optional[SmoothedPosition] = None
        self._start: Optional[SmoothedPosition] = None
        self._target: Optional[RawFix] = None
        self._start_time: float = 0.0
        self._frame_handle: Optional[int] = None

    @staticmethod
    def _clamp_duration(duration_ms: float) -> float:
        return max(INTERPOLATION_MIN_DURATION_MS,
                   min(INTERPOLATION_MAX_DURATION_MS, duration_ms))

    def set_duration(self, duration_ms: float) -> None:
        """Set the interpolation duration, clamped to 100-2000 ms."""
        self._duration_ms = self._clamp_duration(duration_ms)
        logger.debug(f"Interpolation duration set to {self._duration_ms:.0f}ms")

    @property
    def duration_ms(self) -> float:
        return self._duration_ms

    @property
    def state(self) -> InterpolatorState:
        return InterpolatorState.IDLE if self._current is None else InterpolatorState.TRACKING

    @property
    def current_position(self) -> Optional[SmoothedPosition]:
        return self._current

    @property
    def is_interpolating(self) -> bool:
        return self._frame_handle is not None

    def update_position(self, fix: RawFix) -> bool:
        """Feed a new fix.

        Returns:
            True if the fix was accepted (adopted or animated toward),
            False if it was rejected as invalid or dropped as jitter
        """
        if not is_valid_coordinate(fix.lat, fix.lng):
            logger.warning(f"Rejected fix with invalid coordinates: lat={fix.lat}, lng={fix.lng}")
            return False

        if self._current is None:
            self._target = fix
            self._current = self._target_position()
            logger.debug(f"Initial position set to {fix.lat:.6f}, {fix.lng:.6f}")
            self._emit(self._current)
            self._accept(self._current)
            return True

        moved_km = distance(self._current.lat, self._current.lng, fix.lat, fix.lng)
        if moved_km < self._min_movement_km:
            logger.debug(f"Small movement ({moved_km * METERS_PER_KM:.2f}m), skipping interpolation")
            return False

        self._target = fix
        self._start = self._current
        self._start_time = self._clock()
        logger.debug(
            f"Interpolating {self._start.lat:.6f}, {self._start.lng:.6f} -> "
            f"{fix.lat:.6f}, {fix.lng:.6f} ({moved_km * METERS_PER_KM:.1f}m)"
        )
        self._restart_animation()
        self._accept(self._target_position())
        return True

    def _target_position(self) -> SmoothedPosition:
        return SmoothedPosition(
            lat=float(self._target.lat), lng=float(self._target.lng),
            accuracy=self._target.accuracy, timestamp=self._target.timestamp,
        )

    def _restart_animation(self) -> None:
        self._cancel_frame()
        self._frame_handle = self._scheduler.request_frame(self._on_frame)

    def _cancel_frame(self) -> None:
        if self._frame_handle is not None:
            self._scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None

    def _on_frame(self) -> None:
        self._frame_handle = None
        self.tick()

    def tick(self) -> Optional[SmoothedPosition]:
        """Advance the running animation to the clock's current time.

        Schedules the next frame unless the leg is complete.

        Returns:
            The emitted position, or None when nothing is animating
        """
        if self._start is None or self._target is None:
            return None

        elapsed = self._clock() - self._start_time
        progress = min(max(elapsed / self._duration_ms, 0.0), 1.0)

        if progress >= 1.0:
            position = self._target_position()
        else:
            eased = ease_out_cubic(progress)
            position = SmoothedPosition(
                lat=lerp(self._start.lat, self._target.lat, eased),
                lng=lerp(self._start.lng, self._target.lng, eased),
                accuracy=self._target.accuracy,
                timestamp=self._target.timestamp,
            )

        self._current = position
        self._emit(position)

        if progress < 1.0:
            self._cancel_frame()
            self._frame_handle = self._scheduler.request_frame(self._on_frame)
        else:
            self._start = None
            self._cancel_frame()
            logger.debug("Interpolation complete")

        return position

    def stop(self) -> None:
        """Cancel any in-flight animation.

        The current position is kept, so the next fix animates from it.
        """
        self._cancel_frame()
        self._start = None

    def close(self) -> None:
        """Tear down: stop animating and drop callbacks."""
        self.stop()
        self._on_position = None
        self._on_accepted = None

    def _emit(self, position: SmoothedPosition) -> None:
        if self._on_position is not None:
            self._on_position(position)

    def _accept(self, position: SmoothedPosition) -> None:
        if self._on_accepted is not None:
            self._on_accepted(position)
