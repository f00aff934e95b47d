"""Plain-text bodies for trainee notifications."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from flightwx.models import Booking, RescheduleCandidate, SafetyEvaluation

_FOOTER = (
    "---\n"
    "Flight School Weather Monitor\n"
    "This is an automated notification."
)


def _when(value: datetime, tz: str) -> str:
    local = value.astimezone(ZoneInfo(tz))
    return f"{local:%A, %B %d} at {local:%H:%M} ({tz})"


def _details(booking: Booking) -> list[str]:
    return [
        "FLIGHT DETAILS:",
        f"- Location: {booking.location.name}",
        f"- Aircraft: {booking.aircraft_id}",
        f"- Instructor: {booking.instructor_name or booking.instructor_id}",
        f"- Duration: {booking.duration_minutes} minutes",
    ]


def build_weather_alert(
    booking: Booking,
    evaluation: SafetyEvaluation,
    candidates: list[RescheduleCandidate],
    tz: str = "UTC",
) -> tuple[str, str]:
    """Cancellation notice with the reschedule options. Returns (subject, body)."""
    subject = "Flight Cancelled - Weather Below Minimums (Reschedule Options Included)"
    lines = [
        "FLIGHT CANCELLED - Weather Below Safety Minimums",
        "",
        f"Hello {booking.trainee_name or booking.trainee_id},",
        "",
        f"Your flight scheduled for {_when(booking.scheduled_time, tz)} has been "
        "cancelled due to unsafe weather conditions.",
        "",
        *_details(booking),
        "",
        "SAFETY ASSESSMENT:",
        *(f"- {reason}" for reason in evaluation.reasons),
        "",
        "RECOMMENDED RESCHEDULE OPTIONS:",
    ]
    for candidate in sorted(candidates, key=lambda c: c.priority):
        label = " (RECOMMENDED)" if candidate.priority == 1 else ""
        lines.extend([
            "",
            f"OPTION {candidate.priority}{label}: {_when(candidate.suggested_time, tz)}",
            candidate.rationale,
            f"  Weather outlook: {candidate.weather_likelihood}",
        ])
    lines.extend([
        "",
        "To accept an option, contact your instructor or reply to this email "
        "with your preferred time.",
        "",
        _FOOTER,
    ])
    return subject, "\n".join(lines)


def build_confirmation(booking: Booking, tz: str = "UTC") -> tuple[str, str]:
    """Confirmation for an accepted reschedule. Returns (subject, body)."""
    local = booking.scheduled_time.astimezone(ZoneInfo(tz))
    subject = f"Flight Confirmed - {local:%b %d} at {local:%H:%M}"
    lines = [
        "FLIGHT CONFIRMED",
        "",
        f"Hello {booking.trainee_name or booking.trainee_id},",
        "",
        "Your flight has been confirmed for:",
        "",
        _when(booking.scheduled_time, tz),
        "",
        *_details(booking),
        "",
        "We'll keep monitoring weather conditions and notify you if anything changes.",
        "",
        _FOOTER,
    ]
    return subject, "\n".join(lines)
