"""
Geodesy helpers for GPS tracking.

Great-circle distance and initial bearing on a spherical Earth, plus the
coordinate validation used at every pipeline boundary.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from constants import EARTH_RADIUS_KM


def distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two points in kilometers."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
         * math.sin(d_lng / 2) ** 2)
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial bearing from point 1 toward point 2.

    Returns:
        Degrees clockwise from north in [0, 360)
    """
    d_lng = math.radians(lng2 - lng1)
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    y = math.sin(d_lng) * math.cos(lat2_rad)
    x = (math.cos(lat1_rad) * math.sin(lat2_rad)
         - math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(d_lng))

    result = (math.degrees(math.atan2(y, x)) + 360) % 360
    # -0.0 and float rounding can land exactly on 360
    return 0.0 if result >= 360 else result


def angular_difference(a: float, b: float) -> float:
    """Shortest arc between two bearings, in [0, 180]."""
    delta = abs(a - b) % 360
    return min(delta, 360 - delta)


def is_valid_coordinate(lat: Optional[float], lng: Optional[float]) -> bool:
    """Check that lat/lng are finite numbers inside WGS84 bounds."""
    if lat is None or lng is None:
        return False
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def path_length_km(points: Sequence[Tuple[float, float]]) -> float:
    """Sum of haversine legs along an ordered (lat, lng) sequence.

    Vectorized over all consecutive pairs; fewer than two points is 0.
    """
    if len(points) < 2:
        return 0.0

    coords = np.radians(np.asarray(points, dtype=np.float64))
    lat = coords[:, 0]
    lng = coords[:, 1]

    d_lat = np.diff(lat)
    d_lng = np.diff(lng)
    a = (np.sin(d_lat / 2) ** 2
         + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lng / 2) ** 2)
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return float(np.sum(EARTH_RADIUS_KM * c))
