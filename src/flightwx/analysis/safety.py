"""Weather safety evaluation against certification-tier minimums.

Pure functions: no I/O, no caching. Hazards block every tier regardless of
numeric limits; violations are threshold comparisons against the tier's
minimums.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flightwx.analysis.icing import has_icing_conditions
from flightwx.analysis.minimums import get_minimums
from flightwx.analysis.wind import compute_crosswind
from flightwx.models import (
    CertificationTier,
    MeasuredValues,
    SafetyEvaluation,
    SafetyMinimums,
    WeatherObservation,
)

METERS_TO_STATUTE_MILES = 0.000621371

# Below either of these the flight would be in IMC
IMC_VISIBILITY_SM = 3.0
IMC_CEILING_FT = 1000

FROZEN_PRECIPITATION = ("snow", "ice")


def _num(value: float) -> str:
    """Compact numeric formatting: 15.0 -> '15', 2.5 -> '2.5'."""
    return f"{value:g}"


def visibility_statute_miles(visibility_m: float) -> float:
    return round(visibility_m * METERS_TO_STATUTE_MILES, 1)


def _coerce_observation(observation: WeatherObservation | Mapping[str, Any]) -> WeatherObservation:
    if isinstance(observation, WeatherObservation):
        return observation
    if isinstance(observation, Mapping):
        # Raises pydantic.ValidationError on missing or malformed fields
        return WeatherObservation.model_validate(observation)
    raise TypeError(
        f"Expected WeatherObservation, got {type(observation).__name__}"
    )


def find_hazards(obs: WeatherObservation) -> list[str]:
    """Absolute blockers, independent of tier."""
    hazards: list[str] = []
    if obs.thunderstorm:
        hazards.append("Thunderstorm in area - flight prohibited for all training levels")
    if obs.icing or has_icing_conditions(obs.temperature_c, obs.humidity_pct, obs.precipitation):
        hazards.append(
            f"Icing conditions detected ({obs.temperature_c:.1f}°C with visible moisture)"
        )
    if obs.precipitation and obs.precipitation_type in FROZEN_PRECIPITATION:
        hazards.append(f"Active precipitation: {obs.precipitation_type}")
    return hazards


def find_violations(
    actual: MeasuredValues, minimums: SafetyMinimums, tier: CertificationTier
) -> list[str]:
    """Threshold comparisons, in a fixed order."""
    violations: list[str] = []

    if actual.visibility_sm < minimums.visibility_sm:
        violations.append(
            f"Visibility {actual.visibility_sm:.1f}mi is below minimum "
            f"{_num(minimums.visibility_sm)}mi"
        )

    # Unreported ceiling means unlimited and never violates
    if actual.ceiling_ft is not None and actual.ceiling_ft < minimums.ceiling_ft:
        violations.append(
            f"Ceiling {actual.ceiling_ft}ft is below minimum {minimums.ceiling_ft}ft"
        )

    is_imc = actual.visibility_sm < IMC_VISIBILITY_SM or (
        actual.ceiling_ft is not None and actual.ceiling_ft < IMC_CEILING_FT
    )
    if is_imc and not minimums.allow_imc:
        violations.append(
            f"IMC conditions present ({tier.value} pilot not authorized for IMC flight)"
        )

    if actual.wind_speed_kt > minimums.wind_speed_kt:
        violations.append(
            f"Wind speed {_num(actual.wind_speed_kt)}kt exceeds maximum "
            f"{_num(minimums.wind_speed_kt)}kt"
        )

    if actual.wind_gust_kt is not None and actual.wind_gust_kt > minimums.wind_gust_kt:
        violations.append(
            f"Wind gust {_num(actual.wind_gust_kt)}kt exceeds maximum "
            f"{_num(minimums.wind_gust_kt)}kt"
        )

    if actual.crosswind_kt > minimums.crosswind_kt:
        violations.append(
            f"Crosswind component {_num(actual.crosswind_kt)}kt exceeds maximum "
            f"{_num(minimums.crosswind_kt)}kt"
        )

    return violations


def build_reasoning(
    is_safe: bool,
    tier: CertificationTier,
    violations: list[str],
    hazards: list[str],
    minimums: SafetyMinimums,
    actual: MeasuredValues,
) -> str:
    """Deterministic audit text for an evaluation."""
    if is_safe:
        ceiling = f"{actual.ceiling_ft}ft" if actual.ceiling_ft is not None else "unlimited"
        gust = f"G{_num(actual.wind_gust_kt)}kt" if actual.wind_gust_kt else ""
        return (
            f"Flight is SAFE for {tier.value} pilot. Conditions are within acceptable limits: "
            f"Visibility {actual.visibility_sm:.1f}mi (min {_num(minimums.visibility_sm)}mi), "
            f"Ceiling {ceiling} (min {minimums.ceiling_ft}ft), "
            f"Wind {_num(actual.wind_speed_kt)}kt{gust} (max {_num(minimums.wind_speed_kt)}kt), "
            f"Crosswind {_num(actual.crosswind_kt)}kt (max {_num(minimums.crosswind_kt)}kt)."
        )

    parts = [f"Flight is UNSAFE for {tier.value} pilot."]
    if hazards:
        parts.append(f"Critical hazards: {'; '.join(hazards)}.")
    if violations:
        parts.append(f"Weather minimums exceeded: {'; '.join(violations)}.")
    return " ".join(parts)


def evaluate_safety(
    observation: WeatherObservation | Mapping[str, Any],
    tier: CertificationTier | str,
    runway_heading: float = 360,
) -> SafetyEvaluation:
    """Evaluate an observation against the minimums for ``tier``.

    Args:
        observation: The weather snapshot. A mapping is validated into a
            WeatherObservation first, so missing fields raise instead of
            defaulting to safe.
        tier: Certification tier of the trainee.
        runway_heading: Runway magnetic heading used for the crosswind component.

    Raises:
        ValueError: Unknown tier.
        TypeError: Observation is neither a model nor a mapping.
        pydantic.ValidationError: Malformed observation mapping.
    """
    minimums = get_minimums(tier)
    tier = CertificationTier(tier)
    obs = _coerce_observation(observation)

    actual = MeasuredValues(
        visibility_sm=visibility_statute_miles(obs.visibility_m),
        ceiling_ft=obs.ceiling_ft,
        wind_speed_kt=obs.wind_speed_kt,
        wind_gust_kt=obs.wind_gust_kt,
        crosswind_kt=compute_crosswind(obs.wind_speed_kt, obs.wind_direction_deg, runway_heading),
    )

    hazards = find_hazards(obs)
    violations = find_violations(actual, minimums, tier)
    is_safe = not hazards and not violations

    return SafetyEvaluation(
        is_safe=is_safe,
        violations=violations,
        hazards=hazards,
        reasoning=build_reasoning(is_safe, tier, violations, hazards, minimums, actual),
        tier=tier,
        minimums=minimums,
        actual=actual,
    )


def weather_summary(observation: WeatherObservation) -> str:
    """One-line summary for notifications and logs."""
    vis = visibility_statute_miles(observation.visibility_m)
    ceiling = f"{observation.ceiling_ft}ft" if observation.ceiling_ft is not None else "unlimited"
    gust = f"G{_num(observation.wind_gust_kt)}kt" if observation.wind_gust_kt else ""
    precip = f", {observation.precipitation_type}" if observation.precipitation else ""
    return (
        f"Vis: {vis:.1f}mi, Ceiling: {ceiling}, "
        f"Wind: {_num(observation.wind_speed_kt)}kt{gust} @ "
        f"{_num(observation.wind_direction_deg)}°{precip}"
    )
