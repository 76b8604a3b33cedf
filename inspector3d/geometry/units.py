"""Unit conversion and display formatting for kernel outputs (model units in, strings out)."""

import math

from inspector3d.core.logger import get_logger

_log = get_logger("units")

UNIT_TO_METERS = {
    "mm": 0.001,
    "cm": 0.01,
    "m": 1.0,
    "in": 0.0254,
    "ft": 0.3048,
}
INCHES_PER_METER = 39.3701
SQFT_PER_SQM = 10.7639


def to_meters(value: float, unit: str) -> float:
    factor = UNIT_TO_METERS.get(unit)
    if factor is None:
        _log.warning("Unknown unit for conversion: %s", unit)
        return value
    return value * factor


def from_meters(value: float, unit: str) -> float:
    factor = UNIT_TO_METERS.get(unit)
    if factor is None:
        _log.warning("Unknown unit for conversion: %s", unit)
        return value
    return value / factor


def to_feet_inches(value: float, unit: str = "m") -> tuple[int, int]:
    """Split a model-unit length into whole feet and rounded inches (0-11)."""
    total_inches = to_meters(value, unit) * INCHES_PER_METER
    ft = math.floor(total_inches / 12)
    inch = round(total_inches % 12)
    if inch == 12:
        ft, inch = ft + 1, 0
    return ft, inch


def format_distance(value: float, unit: str = "m", show_imperial: bool = True) -> str:
    text = f"{value:.2f} {unit}"
    if show_imperial:
        ft, inch = to_feet_inches(value, unit)
        text += f" ({ft}ft {inch}in)"
    return text


def format_area(value: float, unit: str = "m", show_imperial: bool = True) -> str:
    text = f"{value:.2f} {unit}²"
    if show_imperial:
        sqm = value * to_meters(1.0, unit) ** 2
        text += f" ({sqm * SQFT_PER_SQM:.2f} ft²)"
    return text
