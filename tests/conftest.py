"""
Pytest configuration and fixtures for vehicle tracker tests.

Provides manual clocks and frame schedulers so animation and cooldown
behaviour is deterministic, in-memory storage, and sample Brisbane routes.
"""

import math
import pytest
from typing import List, Tuple

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scheduler import ManualClock, ManualFrameScheduler
from path_store.events import EventChannel
from path_store.storage import MemoryStorage
from path_store.store import PathStore

# Brisbane CBD
BRISBANE = (-27.4705, 153.0260)

# Start of a Monday 2026-01-12, in epoch ms
EPOCH_START_MS = 1768176000000.0


def offset_point(lat: float, lng: float, meters_north: float = 0.0,
                 meters_east: float = 0.0) -> Tuple[float, float]:
    """Move a point by a small number of meters (flat-earth approximation)."""
    d_lat = meters_north / 111195.0
    d_lng = meters_east / (111195.0 * math.cos(math.radians(lat)))
    return lat + d_lat, lng + d_lng


class FailingStorage(MemoryStorage):
    """In-memory storage whose writes fail while `fail` is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = False

    def set_item(self, key, value):
        if self.fail:
            raise OSError("disk full")
        super().set_item(key, value)


@pytest.fixture
def clock():
    """Manual clock starting at a fixed epoch time."""
    return ManualClock(EPOCH_START_MS)


@pytest.fixture
def scheduler(clock):
    """Frame scheduler that advances the manual clock one frame per run."""
    return ManualFrameScheduler(clock)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def channel():
    return EventChannel()


@pytest.fixture
def store(storage, channel):
    return PathStore(storage, channel)


@pytest.fixture
def northbound_route() -> List[Tuple[float, float]]:
    """Ten points, 50 m apart, heading due north from Brisbane CBD."""
    return [offset_point(*BRISBANE, meters_north=50.0 * i) for i in range(10)]


@pytest.fixture
def l_shaped_route() -> List[Tuple[float, float]]:
    """Five points north then five points east, 60 m apart."""
    points = [offset_point(*BRISBANE, meters_north=60.0 * i) for i in range(5)]
    corner = points[-1]
    points.extend(offset_point(*corner, meters_east=60.0 * i) for i in range(1, 6))
    return points


@pytest.fixture
def sample_kml(l_shaped_route) -> str:
    """gx:Track KML for the L-shaped route."""
    coords = "\n".join(
        f"        <gx:coord>{lng} {lat} 12.0</gx:coord>" for lat, lng in l_shaped_route
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<kml xmlns="http://www.opengis.net/kml/2.2" xmlns:gx="http://www.google.com/kml/ext/2.2">\n'
        "  <Placemark>\n"
        "    <gx:Track>\n"
        f"{coords}\n"
        "    </gx:Track>\n"
        "  </Placemark>\n"
        "</kml>\n"
    )
