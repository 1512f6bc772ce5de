"""
Path recorder.

Buffers positions while recording is on and, when it stops, turns the buffer
into an immutable PersistedPath with distance, duration and color, and hands
it to the path store.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from constants import MS_PER_MINUTE
from geodesy import is_valid_coordinate, path_length_km
from interpolator import SmoothedPosition
from path_store.data_models import PathPoint, PersistedPath
from path_store.store import PathStore
from path_store.styling import palette_color
from scheduler import WallClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStats:
    """Live statistics of the recording in progress."""
    distance_km: float = 0.0
    duration_min: float = 0.0
    point_count: int = 0


def _new_path_id() -> str:
    return uuid.uuid4().hex


class PathRecorder:
    """
    Accumulates a route while recording is active.

    Args:
        store: Path store that receives finished recordings
        clock: Wall clock in epoch milliseconds, used for the session start and
            for points that carry no timestamp of their own
        id_factory: Produces unique record ids
    """

    def __init__(self, store: PathStore,
                 clock: Optional[Callable[[], float]] = None,
                 id_factory: Callable[[], str] = _new_path_id):
        self.store = store
        self._clock = clock or WallClock()
        self._id_factory = id_factory

        self.is_recording = False
        self.started_at: Optional[float] = None
        self._points: List[PathPoint] = []
        self._timestamps: List[float] = []

    @property
    def points(self) -> Tuple[PathPoint, ...]:
        return tuple(self._points)

    def start(self) -> None:
        """Clear the buffer and begin a new recording."""
        self._points = []
        self._timestamps = []
        self.started_at = self._clock()
        self.is_recording = True
        logger.info("Recording started")

    def add_position(self, position: SmoothedPosition) -> bool:
        """Append a position to the buffer if recording.

        Returns:
            True if the point was buffered
        """
        if not self.is_recording:
            return False
        if not is_valid_coordinate(position.lat, position.lng):
            logger.warning(
                f"Dropped recorded point with invalid coordinates: lat={position.lat}, lng={position.lng}"
            )
            return False

        timestamp = position.timestamp if position.timestamp is not None else self._clock()
        self._points.append(PathPoint(lat=position.lat, lng=position.lng))
        self._timestamps.append(float(timestamp))
        return True

    def _distance_km(self) -> float:
        return path_length_km([p.as_tuple() for p in self._points])

    def _duration_min(self) -> float:
        if len(self._timestamps) < 2:
            return 0.0
        # Clock skew between fixes must not produce a negative duration
        return max(0.0, (self._timestamps[-1] - self._timestamps[0]) / MS_PER_MINUTE)

    def current_stats(self) -> SessionStats:
        return SessionStats(
            distance_km=self._distance_km(),
            duration_min=self._duration_min(),
            point_count=len(self._points),
        )

    def stop(self) -> Optional[PersistedPath]:
        """End the recording.

        If the store fails to save, the error propagates and the recording
        stays active with its buffer intact, so stop() can be retried.

        Returns:
            The stored PersistedPath, or None if fewer than two points were
            recorded (nothing is persisted in that case)
        """
        if not self.is_recording:
            return None

        if len(self._points) < 2:
            self.is_recording = False
            logger.info(f"Recording stopped with {len(self._points)} point(s), nothing saved")
            return None

        started = self.started_at if self.started_at is not None else self._timestamps[0]
        start_dt = datetime.fromtimestamp(started / 1000.0, tz=timezone.utc)
        created_dt = datetime.fromtimestamp(self._clock() / 1000.0, tz=timezone.utc)

        path = PersistedPath(
            id=self._id_factory(),
            name=f"Recording {start_dt.astimezone():%Y-%m-%d %H:%M}",
            coordinates=list(self._points),
            date=created_dt,
            distance_km=self._distance_km(),
            duration_min=self._duration_min(),
            color=palette_color(len(self.store)),
        )
        stored = self.store.append(path)
        self.is_recording = False
        logger.info(f"Recording stopped: {path.distance_km:.2f}km in {path.duration_min:.1f}min")
        return stored
