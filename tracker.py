"""
Tracking session: the positional pipeline wired end to end.

    location source -> PositionInterpolator -> every frame    -> on_position
                                            -> accepted fixes -> RotationController -> on_rotation
                                                              -> PathRecorder -> PathStore

Rotation and recording consume every accepted fix (after jitter filtering)
as soon as it arrives, whether or not the animation toward it finishes
before the next one. Per-frame positions only go to the renderer.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Set

from config import TrackerConfig
from interpolator import PositionCallback, PositionInterpolator, RawFix, SmoothedPosition
from location_source import (
    ErrorCallback,
    LocationError,
    LocationSource,
    SmartRate,
    WatchOptions,
    watch_options_for,
)
from path_store.data_models import PersistedPath
from path_store.store import PathStore
from recorder import PathRecorder
from rotation import RotationCallback, RotationCommand, RotationController
from scheduler import AsyncioFrameScheduler, FrameScheduler, MonotonicClock, WallClock

logger = logging.getLogger(__name__)

SuburbResolver = Callable[[float, float], Optional[str]]


@dataclass(frozen=True)
class TrackingStats:
    """Stats shown while a session is being recorded."""
    distance_km: float = 0.0
    duration_min: float = 0.0
    suburb_count: int = 0


class TrackingSession:
    """
    Owns one interpolator, rotation gate and recorder for a single vehicle.

    Args:
        source: Location source to watch
        store: Where finished recordings go
        config: Thresholds and modes
        scheduler: Frame scheduler for the interpolation animation
            (an asyncio scheduler on the running loop if None)
        clock: Monotonic milliseconds for animation and rotation cooldown
        wall_clock: Epoch milliseconds for recording timestamps
        suburb_resolver: Optional lookup of a suburb name for a position
        on_position: Called with every smoothed frame
        on_rotation: Called with every accepted rotation
        on_error: Called when the location source fails
    """

    def __init__(self, source: LocationSource, store: PathStore,
                 scheduler: Optional[FrameScheduler] = None,
                 config: Optional[TrackerConfig] = None,
                 clock: Optional[Callable[[], float]] = None,
                 wall_clock: Optional[Callable[[], float]] = None,
                 suburb_resolver: Optional[SuburbResolver] = None,
                 on_position: Optional[PositionCallback] = None,
                 on_rotation: Optional[RotationCallback] = None,
                 on_error: Optional[ErrorCallback] = None):
        self.source = source
        self.store = store
        self.config = config or TrackerConfig()
        clock = clock or MonotonicClock()

        self.on_position = on_position
        self.on_rotation = on_rotation
        self.on_error = on_error
        self.suburb_resolver = suburb_resolver

        self.interpolator = PositionInterpolator(
            on_position=self._handle_position,
            clock=clock,
            scheduler=scheduler or AsyncioFrameScheduler(),
            duration_ms=self.config.interpolation_duration_ms,
            min_movement_m=self.config.min_movement_m,
            on_accepted=self._handle_accepted,
        )
        self.rotation = RotationController(
            on_rotate=self._handle_rotation,
            clock=clock,
            min_distance_m=self.config.rotation_min_distance_m,
            cooldown_ms=self.config.rotation_cooldown_ms,
            min_angle_deg=self.config.rotation_min_angle_deg,
            transition_ms=self.config.rotation_transition_ms,
        )
        self.recorder = PathRecorder(store, clock=wall_clock or WallClock())

        self.watch_options: WatchOptions = watch_options_for(self.config.gps_accuracy)
        self._smart_rate = SmartRate(self.watch_options) if self.config.gps_accuracy == "smart" else None
        self._watch_id: Optional[int] = None
        self._suburbs: Set[str] = set()
        self.last_error: Optional[LocationError] = None
        self._last_fix: Optional[SmoothedPosition] = None

    @property
    def is_watching(self) -> bool:
        return self._watch_id is not None

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start watching the location source."""
        if self._watch_id is not None:
            self.source.clear_watch(self._watch_id)
        self.last_error = None
        self._watch_id = self.source.watch(self._handle_fix, self._handle_error, self.watch_options)
        logger.debug(f"Location watch started with id {self._watch_id}")

    def stop(self) -> None:
        """Stop watching and cancel any running animation."""
        if self._watch_id is not None:
            self.source.clear_watch(self._watch_id)
            logger.debug(f"Location watch {self._watch_id} stopped")
            self._watch_id = None
        self.interpolator.stop()

    def close(self) -> None:
        self.stop()
        self.interpolator.close()

    def start_recording(self) -> None:
        self.recorder.start()
        self._suburbs = set()
        # The vehicle position at the moment recording starts is its first point
        if self._last_fix is not None:
            self._record(self._last_fix)

    def stop_recording(self) -> Optional[PersistedPath]:
        return self.recorder.stop()

    def session_stats(self) -> TrackingStats:
        stats = self.recorder.current_stats()
        return TrackingStats(
            distance_km=stats.distance_km,
            duration_min=stats.duration_min,
            suburb_count=len(self._suburbs),
        )

    # -------------------------------------------------------------------------
    # Pipeline callbacks
    # -------------------------------------------------------------------------

    def _handle_fix(self, fix: RawFix) -> None:
        if self._smart_rate is not None:
            new_options = self._smart_rate.should_restart(fix.speed)
            if new_options is not None:
                self._restart_watch(new_options)
        self.interpolator.update_position(fix)

    def _restart_watch(self, options: WatchOptions) -> None:
        self.watch_options = options
        if self._watch_id is not None:
            logger.debug("Restarting location watch with new sampling options")
            self.source.clear_watch(self._watch_id)
            self._watch_id = self.source.watch(self._handle_fix, self._handle_error, options)

    def _handle_error(self, error: LocationError) -> None:
        logger.error(f"Location source failed ({error.code.name}): {error.message}")
        self.last_error = error
        self.stop()
        if self.on_error is not None:
            self.on_error(error)

    def _handle_position(self, position: SmoothedPosition) -> None:
        if self.on_position is not None:
            self.on_position(position)

    def _handle_accepted(self, position: SmoothedPosition) -> None:
        self._last_fix = position
        self.rotation.update(position)
        if self.recorder.is_recording:
            self._record(position)

    def _handle_rotation(self, command: RotationCommand) -> None:
        if self.on_rotation is not None:
            self.on_rotation(command)

    def _record(self, position: SmoothedPosition) -> None:
        if not self.recorder.add_position(position):
            return
        if self.suburb_resolver is None:
            return
        try:
            suburb = self.suburb_resolver(position.lat, position.lng)
        except Exception as e:
            logger.warning(f"Suburb lookup failed for {position.lat:.5f}, {position.lng:.5f}: {e}")
            return
        if suburb:
            self._suburbs.add(suburb)
