"""Crosswind computation against a runway heading."""

from __future__ import annotations

import math


def angle_between(direction_deg: float, heading_deg: float) -> float:
    """Smallest angle between two bearings, normalised into [0, 180]."""
    diff = abs(direction_deg - heading_deg) % 360
    if diff > 180:
        diff = 360 - diff
    return diff


def compute_crosswind(
    wind_speed_kt: float, wind_direction_deg: float, runway_heading_deg: float = 360
) -> int:
    """Crosswind component magnitude in whole knots.

    Side is ignored: a 10kt wind from the left and from the right both give 10.
    """
    angle = math.radians(angle_between(wind_direction_deg, runway_heading_deg))
    crosswind = abs(wind_speed_kt * math.sin(angle))
    return int(math.floor(crosswind + 0.5))
