"""
Constants for the vehicle tracking engine.

Centralized definitions for geodesy, interpolation, rotation gating,
path styling, and GPS sampling profiles.
"""

from typing import Dict, Tuple
from dataclasses import dataclass


# =============================================================================
# Geodesy
# =============================================================================

EARTH_RADIUS_KM = 6371.0  # Mean radius for haversine
METERS_PER_KM = 1000.0
MS_PER_MINUTE = 60000.0


# =============================================================================
# Position Interpolation
# =============================================================================

INTERPOLATION_DURATION_MS = 500
INTERPOLATION_MIN_DURATION_MS = 100
INTERPOLATION_MAX_DURATION_MS = 2000

# Fixes closer than this to the current position are GPS noise at standstill
MIN_MOVEMENT_M = 1.0

FRAME_INTERVAL_MS = 1000.0 / 60.0  # ~60 fps animation ticks


# =============================================================================
# Rotation Gate
# =============================================================================

ROTATION_MIN_DISTANCE_M = 25.0     # Below this: stopped or crawling, don't rotate
ROTATION_COOLDOWN_MS = 4000        # Minimum time between two rotations
ROTATION_MIN_ANGLE_DEG = 20.0      # Below this: travelling straight, ignore jitter
ROTATION_TRANSITION_MS = 2000      # Ease duration handed to the renderer


# =============================================================================
# Path Colors (hex, red excluded to avoid confusion with clearout areas)
# =============================================================================

@dataclass(frozen=True)
class PathColors:
    """Palette cycled by recording index."""
    GREEN: str = "#10B981"
    BLUE: str = "#3B82F6"
    ORANGE: str = "#F59E0B"
    PURPLE: str = "#8B5CF6"
    CYAN: str = "#06B6D4"
    ORANGE_RED: str = "#F97316"
    LIME: str = "#84CC16"
    PINK: str = "#EC4899"


PATH_COLORS = PathColors()

PATH_PALETTE: Tuple[str, ...] = (
    PATH_COLORS.GREEN,
    PATH_COLORS.BLUE,
    PATH_COLORS.ORANGE,
    PATH_COLORS.PURPLE,
    PATH_COLORS.CYAN,
    PATH_COLORS.ORANGE_RED,
    PATH_COLORS.LIME,
    PATH_COLORS.PINK,
)

COLOR_SCHEMES = frozenset({"bright", "fade"})

# Bright scheme: every path drawn the same
BRIGHT_WEIGHT = 8
BRIGHT_OPACITY = 0.75

# Fade scheme: older paths get thinner and more transparent
FADE_MAX_OPACITY = 0.75
FADE_MIN_OPACITY = 0.3
FADE_OPACITY_STEP = 0.1
FADE_MAX_WEIGHT = 10
FADE_MIN_WEIGHT = 4


# =============================================================================
# Persistence
# =============================================================================

PATHS_STORAGE_KEY = "persistentPaths"
DEFAULT_STORE_PATH = "~/.local/share/vehicle-tracker/storage.json"


# =============================================================================
# GPS Sampling Profiles
# =============================================================================

GPS_ACCURACY_MODES = frozenset({"high", "medium", "low", "smart"})

# mode -> (high_accuracy, timeout_ms, maximum_age_ms)
GPS_WATCH_PROFILES: Dict[str, Tuple[bool, int, int]] = {
    "high": (True, 15000, 500),
    "medium": (True, 30000, 1000),
    "low": (False, 45000, 2500),
    "smart": (True, 15000, 1000),  # Starts at medium, adjusted by speed
}

# Smart rate speed bands (km/h)
SMART_RATE_HIGH_SPEED_KMH = 80
SMART_RATE_MEDIUM_SPEED_KMH = 50
SMART_RATE_RESTART_DELTA_MPS = 5.0  # ~18 km/h change before re-tuning

MPS_TO_KMH = 3.6


# =============================================================================
# Simulation
# =============================================================================

SIMULATION_BASE_INTERVAL_MS = 2000
SIMULATION_MIN_INTERVAL_MS = 1000
SIMULATED_FIX_ACCURACY_M = 5.0
