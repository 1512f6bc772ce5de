"""
Path color and line styling.

The color of a path is fixed when it is recorded (palette cycled by the
number of existing paths). How it is drawn is a display-wide scheme:
"bright" draws every path the same, "fade" makes older paths thinner and
more transparent according to their recency rank.
"""

from dataclasses import dataclass

from constants import (
    PATH_PALETTE,
    COLOR_SCHEMES,
    BRIGHT_WEIGHT,
    BRIGHT_OPACITY,
    FADE_MAX_OPACITY,
    FADE_MIN_OPACITY,
    FADE_OPACITY_STEP,
    FADE_MAX_WEIGHT,
    FADE_MIN_WEIGHT,
)


@dataclass(frozen=True)
class PathStyle:
    """How to draw one path.

    Attributes:
        color: Hex color string
        weight: Line width in pixels
        opacity: 0.0-1.0
    """
    color: str
    weight: int
    opacity: float


def palette_color(index: int) -> str:
    """Color for the path at the given creation index."""
    return PATH_PALETTE[index % len(PATH_PALETTE)]


def path_style(index: int, scheme: str = "bright", count: int = 0) -> PathStyle:
    """Line style for the path at `index` among `count` stored paths.

    Args:
        index: Creation index of the path (0 = oldest)
        scheme: "bright" or "fade"
        count: Total number of stored paths, used for the fade age

    Raises:
        ValueError: Unknown scheme
    """
    if scheme not in COLOR_SCHEMES:
        raise ValueError(f"Unknown color scheme: {scheme}. Use 'bright' or 'fade'")

    color = palette_color(index)
    if scheme == "bright":
        return PathStyle(color=color, weight=BRIGHT_WEIGHT, opacity=BRIGHT_OPACITY)

    age = count - index
    opacity = max(FADE_MIN_OPACITY, FADE_MAX_OPACITY - age * FADE_OPACITY_STEP)
    weight = max(FADE_MIN_WEIGHT, FADE_MAX_WEIGHT - age)
    return PathStyle(color=color, weight=weight, opacity=opacity)
