"""Training weather minimums per certification tier.

Conservative school minimums, not legal minimums. A more capable tier must
never have stricter limits than a less capable one.
"""

from __future__ import annotations

from flightwx.models import CertificationTier, SafetyMinimums

WEATHER_MINIMUMS: dict[CertificationTier, SafetyMinimums] = {
    CertificationTier.STUDENT: SafetyMinimums(
        visibility_sm=5, ceiling_ft=3000, wind_speed_kt=10,
        wind_gust_kt=15, crosswind_kt=5, allow_imc=False,
    ),
    CertificationTier.PRIVATE: SafetyMinimums(
        visibility_sm=3, ceiling_ft=1500, wind_speed_kt=15,
        wind_gust_kt=20, crosswind_kt=8, allow_imc=False,
    ),
    CertificationTier.INSTRUMENT: SafetyMinimums(
        visibility_sm=1, ceiling_ft=500, wind_speed_kt=20,
        wind_gust_kt=25, crosswind_kt=12, allow_imc=True,
    ),
    CertificationTier.COMMERCIAL: SafetyMinimums(
        visibility_sm=1, ceiling_ft=500, wind_speed_kt=25,
        wind_gust_kt=30, crosswind_kt=15, allow_imc=True,
    ),
}


def get_minimums(tier: CertificationTier | str) -> SafetyMinimums:
    """Minimums for a tier. Raises ValueError for an unknown tier."""
    try:
        tier = CertificationTier(tier)
    except ValueError:
        valid = ", ".join(t.value for t in CertificationTier)
        raise ValueError(f"Unknown certification tier '{tier}'. Valid: {valid}") from None
    return WEATHER_MINIMUMS[tier]


def is_at_least_as_loose(looser: SafetyMinimums, stricter: SafetyMinimums) -> bool:
    """True if every limit in ``looser`` is equal to or more permissive than ``stricter``."""
    return (
        looser.visibility_sm <= stricter.visibility_sm
        and looser.ceiling_ft <= stricter.ceiling_ft
        and looser.wind_speed_kt >= stricter.wind_speed_kt
        and looser.wind_gust_kt >= stricter.wind_gust_kt
        and looser.crosswind_kt >= stricter.crosswind_kt
        and (looser.allow_imc or not stricter.allow_imc)
    )


def check_monotonic(table: dict[CertificationTier, SafetyMinimums] | None = None) -> None:
    """Raise ValueError unless the table covers every tier in capability order."""
    table = table if table is not None else WEATHER_MINIMUMS
    missing = [t.value for t in CertificationTier if t not in table]
    if missing:
        raise ValueError(f"Minimums missing for tiers: {', '.join(missing)}")

    tiers = sorted(table, key=lambda t: t.rank)
    for lower, higher in zip(tiers, tiers[1:]):
        if not is_at_least_as_loose(table[higher], table[lower]):
            raise ValueError(
                f"Minimums for '{higher.value}' are stricter than for '{lower.value}'"
            )


check_monotonic()
