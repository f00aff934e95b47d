"""Surface icing hazard from temperature and visible moisture."""

from __future__ import annotations

ICING_TEMP_MIN_C = -10.0
ICING_TEMP_MAX_C = 10.0
VISIBLE_MOISTURE_RH = 80.0


def has_icing_conditions(temperature_c: float, humidity_pct: float, precipitation: bool) -> bool:
    """Temperature within the icing band with visible moisture (high RH or precipitation)."""
    in_band = ICING_TEMP_MIN_C <= temperature_c <= ICING_TEMP_MAX_C
    moisture = humidity_pct > VISIBLE_MOISTURE_RH or precipitation
    return in_band and moisture
