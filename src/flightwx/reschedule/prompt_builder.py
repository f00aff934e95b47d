"""Assemble the ranking model's user message from booking, weather and slots."""

from __future__ import annotations

from zoneinfo import ZoneInfo

from flightwx.analysis.minimums import get_minimums
from flightwx.models import (
    Booking,
    CertificationTier,
    MeasuredValues,
    SafetyEvaluation,
    TimeSlot,
)

_TIER_NOTES = {
    CertificationTier.STUDENT: [
        "Prefer afternoon flights (more stable conditions)",
        "Avoid early mornings (fog/dew risk)",
    ],
    CertificationTier.PRIVATE: [
        "More flexible than student pilots but still VFR-only",
    ],
    CertificationTier.INSTRUMENT: [
        "Can fly in early morning/evening",
        "Training may include actual IMC practice",
    ],
    CertificationTier.COMMERCIAL: [
        "Most flexible scheduling",
        "Should still avoid thunderstorms, icing, and severe conditions",
    ],
}


def tier_guidance(tier: CertificationTier) -> str:
    """Limits for a tier, taken from the minimums table, plus scheduling notes."""
    m = get_minimums(tier)
    lines = [
        f"TRAINING LEVEL: {tier.value.upper()}",
        f"- Minimum visibility: {m.visibility_sm:g} statute miles",
        f"- Minimum ceiling: {m.ceiling_ft}ft",
        f"- Maximum wind: {m.wind_speed_kt:g}kt, gusts {m.wind_gust_kt:g}kt",
        f"- Maximum crosswind: {m.crosswind_kt:g}kt",
        "- IMC permitted" if m.allow_imc else "- NO IMC (must be VFR)",
    ]
    lines.extend(f"- {note}" for note in _TIER_NOTES[tier])
    return "\n".join(lines)


def format_slots(slots: list[TimeSlot], tz: str = "UTC") -> str:
    """Numbered slot list with local wall time and the exact ISO start."""
    if not slots:
        return "No available slots found where trainee, instructor, and aircraft are all available."

    zone = ZoneInfo(tz)
    lines = ["AVAILABLE SLOTS (trainee, instructor and aircraft all free):"]
    for i, slot in enumerate(slots, 1):
        start = slot.start.astimezone(zone)
        end = slot.end.astimezone(zone)
        lines.append(
            f"{i}. {start:%A, %b %d} from {start:%H:%M} to {end:%H:%M} "
            f"(ISO: {slot.start.isoformat()})"
        )
    return "\n".join(lines)


def format_conditions(actual: MeasuredValues) -> str:
    ceiling = f"{actual.ceiling_ft}ft" if actual.ceiling_ft is not None else "Clear"
    wind = f"{actual.wind_speed_kt:g}kt"
    if actual.wind_gust_kt:
        wind += f", gusting {actual.wind_gust_kt:g}kt"
    return "\n".join([
        f"- Visibility: {actual.visibility_sm:g} statute miles",
        f"- Ceiling: {ceiling}",
        f"- Wind: {wind}",
        f"- Crosswind component: {actual.crosswind_kt:g}kt",
    ])


def build_ranking_context(
    booking: Booking,
    evaluation: SafetyEvaluation,
    slots: list[TimeSlot],
    tz: str = "UTC",
) -> str:
    """Build the full user message for the ranker.

    Sections:
    1. Booking metadata
    2. Cancellation reasons
    3. Measured conditions
    4. Tier limits and guidance
    5. Overlap slots
    """
    local_start = booking.scheduled_time.astimezone(ZoneInfo(tz))
    sections = [
        "BOOKING:\n"
        f"- Trainee: {booking.trainee_name or booking.trainee_id}\n"
        f"- Instructor: {booking.instructor_name or booking.instructor_id}\n"
        f"- Aircraft: {booking.aircraft_id}\n"
        f"- Original time: {local_start:%A, %b %d %H:%M} ({tz})\n"
        f"- Location: {booking.location.name}\n"
        f"- Duration: {booking.duration_minutes} minutes",
        "CANCELLATION REASONS:\n" + "\n".join(f"- {r}" for r in evaluation.reasons),
    ]
    sections.append("MEASURED CONDITIONS:\n" + format_conditions(evaluation.actual))
    sections.append(tier_guidance(booking.tier))
    sections.append(format_slots(slots, tz))
    return "\n\n".join(sections)
