"""
Tracker configuration.

All thresholds are configuration, never error conditions. Values come from
defaults, an optional JSON file, and CLI overrides, and are validated by
pydantic.
"""

import json
import logging
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from constants import (
    DEFAULT_STORE_PATH,
    INTERPOLATION_DURATION_MS,
    INTERPOLATION_MIN_DURATION_MS,
    INTERPOLATION_MAX_DURATION_MS,
    MIN_MOVEMENT_M,
    ROTATION_MIN_DISTANCE_M,
    ROTATION_COOLDOWN_MS,
    ROTATION_MIN_ANGLE_DEG,
    ROTATION_TRANSITION_MS,
)

logger = logging.getLogger(__name__)


class TrackerConfig(BaseModel):
    interpolation_duration_ms: float = Field(
        default=INTERPOLATION_DURATION_MS,
        ge=INTERPOLATION_MIN_DURATION_MS,
        le=INTERPOLATION_MAX_DURATION_MS,
    )
    min_movement_m: float = Field(default=MIN_MOVEMENT_M, gt=0)
    rotation_min_distance_m: float = Field(default=ROTATION_MIN_DISTANCE_M, ge=0)
    rotation_cooldown_ms: float = Field(default=ROTATION_COOLDOWN_MS, ge=0)
    rotation_min_angle_deg: float = Field(default=ROTATION_MIN_ANGLE_DEG, ge=0, le=180)
    rotation_transition_ms: int = Field(default=ROTATION_TRANSITION_MS, ge=0)
    color_scheme: Literal["bright", "fade"] = "bright"
    gps_accuracy: Literal["high", "medium", "low", "smart"] = "smart"
    store_path: str = DEFAULT_STORE_PATH

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


def load_config(path: Optional[Union[str, Path]] = None, **overrides) -> TrackerConfig:
    """
    Build a TrackerConfig from an optional JSON file plus overrides.

    Args:
        path: JSON file holding an object of config fields, or None for defaults
        **overrides: Field values that win over the file; None values are ignored

    Raises:
        FileNotFoundError: path given but missing
        ValueError: file is not a JSON object
        pydantic.ValidationError: a value violates its constraint
    """
    data = {}
    if path is not None:
        with open(Path(path).expanduser(), 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        logger.debug(f"Loaded config from {path}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    return TrackerConfig.model_validate(data)
