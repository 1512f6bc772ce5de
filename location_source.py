"""
Location source contract and a simulated source for replaying routes.

A location source delivers RawFix values to a watcher until the watch is
cleared, and reports failures as typed LocationErrors. The device backends
live outside this project; SimulatedLocationSource replays a list of points
(e.g. a KML track) for testing map rotation and recording without a GPS.
"""

import itertools
import logging
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from constants import (
    GPS_ACCURACY_MODES,
    GPS_WATCH_PROFILES,
    MPS_TO_KMH,
    SIMULATED_FIX_ACCURACY_M,
    SIMULATION_BASE_INTERVAL_MS,
    SIMULATION_MIN_INTERVAL_MS,
    SMART_RATE_HIGH_SPEED_KMH,
    SMART_RATE_MEDIUM_SPEED_KMH,
    SMART_RATE_RESTART_DELTA_MPS,
)
from geodesy import is_valid_coordinate
from interpolator import RawFix
from scheduler import WallClock

logger = logging.getLogger(__name__)


class LocationErrorCode(IntEnum):
    """Failure classes of a location source (W3C geolocation codes)."""
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


_DEFAULT_MESSAGES = {
    LocationErrorCode.PERMISSION_DENIED: "Location access denied. Allow location permissions for this device.",
    LocationErrorCode.POSITION_UNAVAILABLE: "Location information is unavailable. Check GPS or network connection.",
    LocationErrorCode.TIMEOUT: "Location request timed out. Please try again.",
}


class LocationError(Exception):
    """A classified location source failure."""

    def __init__(self, code: LocationErrorCode, message: Optional[str] = None):
        self.code = LocationErrorCode(code)
        self.message = message or _DEFAULT_MESSAGES[self.code]
        super().__init__(self.message)


FixCallback = Callable[[RawFix], None]
ErrorCallback = Callable[[LocationError], None]


# =============================================================================
# Watch options
# =============================================================================

@dataclass(frozen=True)
class WatchOptions:
    """Sampling options handed to a location source."""
    high_accuracy: bool = True
    timeout_ms: int = 15000
    maximum_age_ms: int = 1000


def watch_options_for(mode: str) -> WatchOptions:
    """Options for a GPS accuracy mode: high, medium, low or smart.

    Raises:
        ValueError: Unknown mode
    """
    if mode not in GPS_ACCURACY_MODES:
        raise ValueError(f"Unknown GPS accuracy mode: {mode}")
    high_accuracy, timeout_ms, maximum_age_ms = GPS_WATCH_PROFILES[mode]
    return WatchOptions(high_accuracy=high_accuracy, timeout_ms=timeout_ms, maximum_age_ms=maximum_age_ms)


def smart_rate_options(speed_mps: Optional[float]) -> WatchOptions:
    """Sample faster at low speed, where detail matters, and slower on highways."""
    if speed_mps is None:
        return WatchOptions(high_accuracy=True, timeout_ms=15000, maximum_age_ms=1000)

    speed_kmh = speed_mps * MPS_TO_KMH
    if speed_kmh > SMART_RATE_HIGH_SPEED_KMH:
        return WatchOptions(high_accuracy=True, timeout_ms=30000, maximum_age_ms=2500)
    if speed_kmh > SMART_RATE_MEDIUM_SPEED_KMH:
        return WatchOptions(high_accuracy=True, timeout_ms=15000, maximum_age_ms=1000)
    return WatchOptions(high_accuracy=True, timeout_ms=10000, maximum_age_ms=500)


class SmartRate:
    """Tracks speed changes and decides when a watch should be re-tuned."""

    def __init__(self, options: Optional[WatchOptions] = None):
        self.options = options or watch_options_for("smart")
        self.last_speed: Optional[float] = None

    def should_restart(self, speed_mps: Optional[float]) -> Optional[WatchOptions]:
        """
        Returns:
            New options when the watch should restart with them, else None
        """
        if speed_mps is None:
            return None
        if self.last_speed is not None and abs(speed_mps - self.last_speed) <= SMART_RATE_RESTART_DELTA_MPS:
            return None

        new_options = smart_rate_options(speed_mps)
        if new_options.maximum_age_ms == self.options.maximum_age_ms:
            return None

        logger.debug(
            f"Smart rate: {speed_mps * MPS_TO_KMH:.1f} km/h, sampling every {new_options.maximum_age_ms}ms"
        )
        self.last_speed = speed_mps
        self.options = new_options
        return new_options


# =============================================================================
# Sources
# =============================================================================

class LocationSource:
    """Subscribe/unsubscribe contract of a device location source."""

    def watch(self, on_fix: FixCallback, on_error: Optional[ErrorCallback] = None,
              options: Optional[WatchOptions] = None) -> int:
        """Start delivering fixes. Returns a watch id for clear_watch."""
        raise NotImplementedError

    def clear_watch(self, watch_id: int) -> None:
        raise NotImplementedError


def interval_for_speed(speed_multiplier: float = 1.0) -> float:
    """Delay between simulated fixes for a playback speed multiplier."""
    if speed_multiplier <= 0:
        raise ValueError("speed_multiplier must be positive")
    return max(SIMULATION_MIN_INTERVAL_MS, SIMULATION_BASE_INTERVAL_MS / speed_multiplier)


class SimulatedLocationSource(LocationSource):
    """
    Replays a fixed list of points as if they came from a GPS.

    Driven explicitly: each step() delivers the next point to every watcher
    and moves the clock-based timestamp forward. Playback loops back to the
    start after the last point.

    Args:
        points: (lat, lng) pairs in travel order
        clock: Wall clock in epoch milliseconds, stamped on each fix
        accuracy: Accuracy reported on each fix (meters)
        loop: Restart from the first point after the last one
    """

    def __init__(self, points: Sequence[Tuple[float, float]],
                 clock: Optional[Callable[[], float]] = None,
                 accuracy: float = SIMULATED_FIX_ACCURACY_M,
                 loop: bool = True):
        self.points: List[Tuple[float, float]] = list(points)
        self._clock = clock or WallClock()
        self.accuracy = accuracy
        self.loop = loop
        self.current_index = 0
        self._watchers: Dict[int, Tuple[FixCallback, Optional[ErrorCallback]]] = {}
        self._ids = itertools.count(1)

    @classmethod
    def from_kml(cls, kml_content: str, **kwargs) -> "SimulatedLocationSource":
        points = parse_kml_coordinates(kml_content)
        logger.info(f"KML loaded with {len(points)} GPS points")
        return cls(points, **kwargs)

    @property
    def is_running(self) -> bool:
        return bool(self._watchers)

    @property
    def finished(self) -> bool:
        """True once every point was delivered and looping is off."""
        return not self.loop and self.current_index >= len(self.points)

    def progress(self) -> Tuple[int, int, float]:
        """(current index, total points, percentage)."""
        total = len(self.points)
        pct = (self.current_index / total * 100.0) if total else 0.0
        return self.current_index, total, pct

    def watch(self, on_fix: FixCallback, on_error: Optional[ErrorCallback] = None,
              options: Optional[WatchOptions] = None) -> int:
        watch_id = next(self._ids)
        self._watchers[watch_id] = (on_fix, on_error)
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        self._watchers.pop(watch_id, None)

    def step(self) -> Optional[RawFix]:
        """Deliver the next point.

        Returns:
            The delivered fix, or None if nothing was delivered
        """
        if not self.points or not self._watchers:
            return None

        if self.current_index >= len(self.points):
            if not self.loop:
                return None
            logger.debug("Simulation reached end, looping back to start")
            self.current_index = 0

        lat, lng = self.points[self.current_index]
        self.current_index += 1

        if not is_valid_coordinate(lat, lng):
            logger.error(f"Invalid point data at index {self.current_index - 1}: {lat}, {lng}")
            return None

        fix = RawFix(lat=lat, lng=lng, accuracy=self.accuracy, timestamp=self._clock())
        for on_fix, _ in list(self._watchers.values()):
            on_fix(fix)
        return fix

    def fail(self, code: LocationErrorCode, message: Optional[str] = None) -> LocationError:
        """Report an error to every watcher."""
        error = LocationError(code, message)
        for _, on_error in list(self._watchers.values()):
            if on_error is not None:
                on_error(error)
        return error


# =============================================================================
# KML parsing
# =============================================================================

_GX_COORD_RE = re.compile(r"<gx:coord>\s*([-0-9.eE+]+)\s+([-0-9.eE+]+)(?:\s+([-0-9.eE+]+))?\s*</gx:coord>")
_COORDINATES_RE = re.compile(r"<coordinates>(.*?)</coordinates>", re.DOTALL)


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


def parse_kml_coordinates(kml_content: str) -> List[Tuple[float, float]]:
    """
    Extract (lat, lng) points from KML.

    Reads gx:Track <gx:coord>lng lat alt</gx:coord> entries; if there are
    none, falls back to <coordinates>lng,lat[,alt] ...</coordinates> blocks.
    Points that are not valid coordinates are skipped.
    """
    points: List[Tuple[float, float]] = []

    for match in _GX_COORD_RE.finditer(kml_content):
        lng = _to_float(match.group(1))
        lat = _to_float(match.group(2))
        if is_valid_coordinate(lat, lng):
            points.append((lat, lng))

    if points:
        return points

    for block in _COORDINATES_RE.findall(kml_content):
        for token in block.split():
            parts = token.split(",")
            if len(parts) < 2:
                continue
            lng = _to_float(parts[0])
            lat = _to_float(parts[1])
            if is_valid_coordinate(lat, lng):
                points.append((lat, lng))

    return points
