"""
Heading-up rotation gate.

Decides when the map view should rotate to follow the direction of travel.

Convention: the map bearing is set to the travel bearing, so the direction
of travel always points UP on screen. When you turn right, the world rotates
left. A renderer that rotates a container instead of setting a map bearing
uses RotationCommand.view_rotation_deg.

GPS bearings computed between two close, noisy fixes swing wildly at low
speed, so a rotation only happens when all three gates pass:
- the vehicle moved far enough since the previous position
- enough time passed since the last rotation
- the new bearing differs enough from the current one
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from constants import (
    METERS_PER_KM,
    ROTATION_MIN_DISTANCE_M,
    ROTATION_COOLDOWN_MS,
    ROTATION_MIN_ANGLE_DEG,
    ROTATION_TRANSITION_MS,
)
from geodesy import angular_difference, bearing, distance
from interpolator import SmoothedPosition
from scheduler import MonotonicClock

logger = logging.getLogger(__name__)


@dataclass
class BearingState:
    """Rotation state for one tracking session.

    Attributes:
        last_bearing: Bearing of the last accepted rotation, None before the first
        last_rotation_time: Clock time (ms) of the last accepted rotation
    """
    last_bearing: Optional[float] = None
    last_rotation_time: Optional[float] = None


@dataclass(frozen=True)
class RotationCommand:
    """Instruction for the renderer to ease the view to a new bearing."""
    target_bearing: float
    transition_duration_ms: int

    @property
    def view_rotation_deg(self) -> float:
        """Clockwise container rotation that puts the travel bearing at the top."""
        return (360.0 - self.target_bearing) % 360.0


RotationCallback = Callable[[RotationCommand], None]


class RotationController:
    """Hysteresis gate between the smoothed position stream and view rotation.

    Args:
        on_rotate: Called with each accepted RotationCommand
        clock: Callable returning milliseconds
        min_distance_m: Movement between consecutive positions required to rotate
        cooldown_ms: Minimum time between two rotations
        min_angle_deg: Minimum shortest-arc bearing change required to rotate
        transition_ms: Ease duration put on emitted commands
    """

    def __init__(self, on_rotate: Optional[RotationCallback] = None,
                 clock: Optional[Callable[[], float]] = None,
                 min_distance_m: float = ROTATION_MIN_DISTANCE_M,
                 cooldown_ms: float = ROTATION_COOLDOWN_MS,
                 min_angle_deg: float = ROTATION_MIN_ANGLE_DEG,
                 transition_ms: int = ROTATION_TRANSITION_MS):
        self._on_rotate = on_rotate
        self._clock = clock or MonotonicClock()
        self.min_distance_m = min_distance_m
        self.cooldown_ms = cooldown_ms
        self.min_angle_deg = min_angle_deg
        self.transition_ms = transition_ms

        self.state = BearingState()
        self._previous: Optional[SmoothedPosition] = None

    @property
    def previous_position(self) -> Optional[SmoothedPosition]:
        return self._previous

    def reset(self) -> None:
        self.state = BearingState()
        self._previous = None

    def update(self, position: SmoothedPosition) -> Optional[RotationCommand]:
        """Feed the next smoothed position.

        Returns:
            The emitted RotationCommand, or None if the gate held
        """
        previous = self._previous
        self._previous = position
        if previous is None:
            return None

        moved_m = distance(previous.lat, previous.lng, position.lat, position.lng) * METERS_PER_KM
        travel_bearing = bearing(previous.lat, previous.lng, position.lat, position.lng)
        now = self._clock()

        logger.debug(f"Movement: bearing {travel_bearing:.1f}°, distance {moved_m:.1f}m")

        if moved_m <= self.min_distance_m:
            return None

        if self.state.last_rotation_time is not None:
            if now - self.state.last_rotation_time <= self.cooldown_ms:
                return None

        # An unset bearing means the view is still north-up
        current = self.state.last_bearing if self.state.last_bearing is not None else 0.0
        if angular_difference(travel_bearing, current) <= self.min_angle_deg:
            return None

        command = RotationCommand(
            target_bearing=travel_bearing,
            transition_duration_ms=int(self.transition_ms),
        )
        self.state.last_bearing = travel_bearing
        self.state.last_rotation_time = now
        logger.debug(f"Rotating view to bearing {travel_bearing:.1f}°")

        if self._on_rotate is not None:
            self._on_rotate(command)
        return command
