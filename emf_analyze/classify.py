"""Field magnitude classification, display radius and weight normalization."""

from __future__ import annotations

import math
from typing import Final, Literal

Band = Literal["low", "medium", "high"]
CellBand = Literal["low", "medium", "elevated", "high"]

# Two separate threshold sets: per-session zone colouring uses 45/70 while the
# legend text uses 30/50. They are kept apart on purpose; see DESIGN.md.
ZONE_THRESHOLDS: Final[tuple[float, float]] = (45.0, 70.0)
LEGEND_THRESHOLDS: Final[tuple[float, float]] = (30.0, 50.0)

# Average-weight thresholds for grid cells (upper bounds of low/medium/elevated).
CELL_THRESHOLDS: Final[tuple[float, float, float]] = (0.35, 0.5, 0.7)

RADIUS_SCALE: Final[float] = 1.5
RADIUS_MIN_M: Final[float] = 15.0
RADIUS_MAX_M: Final[float] = 80.0
# 0..100 uT -> 0..1
WEIGHT_FULL_SCALE: Final[float] = 100.0

ZONE_COLOURS: Final[dict[str, str]] = {"low": "#1a9850", "medium": "#fc8d59", "high": "#d73027"}
CELL_COLOURS: Final[dict[str, str]] = {
    "low": "#008000",
    "medium": "#FFFF00",
    "elevated": "#FFA500",
    "high": "#FF0000",
}

# (lower weight bound, colour) stops of the continuous heat surface
HEAT_GRADIENT: Final[tuple[tuple[float, str], ...]] = (
    (0.0, "#008000"),
    (0.45, "#90EE90"),
    (0.5, "#FFFF00"),
    (0.7, "#FFA500"),
    (0.85, "#FF0000"),
    (1.0, "#8B0000"),
)


def field_magnitude(x: float, y: float, z: float) -> float:
    return math.sqrt(x * x + y * y + z * z)


def _band(magnitude: float, thresholds: tuple[float, float]) -> Band:
    lower, upper = thresholds
    if magnitude > upper:
        return "high"
    if magnitude > lower:
        return "medium"
    return "low"


def zone_band(magnitude: float) -> Band:
    """Severity band used to colour per-session intensity zones (45/70)."""

    return _band(magnitude, ZONE_THRESHOLDS)


def legend_band(magnitude: float) -> Band:
    """Severity band used by the legend text (30/50)."""

    return _band(magnitude, LEGEND_THRESHOLDS)


def zone_colour(magnitude: float) -> str:
    return ZONE_COLOURS[zone_band(magnitude)]


def display_radius_m(magnitude: float) -> float:
    """Circle radius in meters: clamp(magnitude * 1.5, 15, 80)."""

    return max(RADIUS_MIN_M, min(RADIUS_MAX_M, magnitude * RADIUS_SCALE))


def magnitude_weight(magnitude: float) -> float:
    """Normalize a magnitude to a heat weight in [0, 1]."""

    return max(0.0, min(1.0, magnitude / WEIGHT_FULL_SCALE))


def cell_band(average_weight: float) -> CellBand:
    """Four-band classification of a grid cell's average weight."""

    low, medium, elevated = CELL_THRESHOLDS
    if average_weight > elevated:
        return "high"
    if average_weight > medium:
        return "elevated"
    if average_weight > low:
        return "medium"
    return "low"


def legend_entries() -> list[tuple[Band, str]]:
    """Legend lines (band, text) built from LEGEND_THRESHOLDS."""

    lower, upper = LEGEND_THRESHOLDS
    return [
        ("low", f"Low (< {lower:g} μT)"),
        ("medium", f"Medium ({lower:g}-{upper:g} μT)"),
        ("high", f"High (> {upper:g} μT)"),
    ]


def heat_colour(weight: float) -> str:
    """Colour of the highest gradient stop not above weight."""

    colour = HEAT_GRADIENT[0][1]
    for bound, c in HEAT_GRADIENT:
        if weight >= bound:
            colour = c
    return colour
