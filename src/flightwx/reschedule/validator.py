"""Reschedule candidate generation and contract validation.

The ranker picks and phrases; this module decides. Every suggestion must be
one of the overlap slots, inside the look-ahead window and within operating
hours, or the whole response is rejected. There is no repair.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence
from zoneinfo import ZoneInfo

from flightwx.exceptions import CandidateContractError, NoOverlapError
from flightwx.interfaces import Ranker
from flightwx.models import (
    Booking,
    ProposedCandidate,
    RescheduleCandidate,
    SafetyEvaluation,
    TimeSlot,
)

logger = logging.getLogger(__name__)

CANDIDATE_COUNT = 3
MAX_LOOKAHEAD = timedelta(days=7)
OPERATING_START_HOUR = 7
OPERATING_END_HOUR = 18  # exclusive


def parse_suggested_time(value: str) -> datetime:
    """ISO-8601 to an aware datetime; naive input is read as UTC.

    Raises ValueError when the string is not a timestamp.
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_candidates(
    booking_id: str,
    proposals: Sequence[ProposedCandidate],
    overlap: Sequence[TimeSlot],
    *,
    now: datetime | None = None,
    tz: str = "UTC",
) -> list[RescheduleCandidate]:
    """Check ranker output against the candidate contract.

    Rules are applied in order: count, timestamp, overlap membership,
    look-ahead window, operating hours, rationale, then the priority set.

    Returns:
        Candidates sorted by priority.

    Raises:
        CandidateContractError: On the first broken rule.
    """
    now = now or datetime.now(timezone.utc)
    zone = ZoneInfo(tz)

    if len(proposals) != CANDIDATE_COUNT:
        raise CandidateContractError(
            "count", f"Expected exactly {CANDIDATE_COUNT} options, got {len(proposals)}"
        )

    slot_starts = {slot.start for slot in overlap}
    drafts: list[dict] = []

    for index, proposal in enumerate(proposals, 1):
        try:
            suggested = parse_suggested_time(proposal.suggested_time)
        except ValueError:
            raise CandidateContractError(
                "timestamp", f"Invalid timestamp: {proposal.suggested_time!r}", index
            ) from None

        if suggested not in slot_starts:
            raise CandidateContractError(
                "not_in_overlap",
                f"{suggested.isoformat()} is not one of the available slots",
                index,
            )

        if suggested <= now:
            raise CandidateContractError(
                "window", f"Suggested time {suggested.isoformat()} is in the past", index
            )
        if suggested > now + MAX_LOOKAHEAD:
            raise CandidateContractError(
                "window",
                f"Suggested time {suggested.isoformat()} is more than 7 days ahead",
                index,
            )

        local_hour = suggested.astimezone(zone).hour
        if not OPERATING_START_HOUR <= local_hour < OPERATING_END_HOUR:
            raise CandidateContractError(
                "operating_hours",
                f"Suggested time is outside operating hours "
                f"({OPERATING_START_HOUR}:00-{OPERATING_END_HOUR}:00 {tz}), got {local_hour}:00",
                index,
            )

        if not proposal.rationale or not proposal.rationale.strip():
            raise CandidateContractError("rationale", "Missing reasoning", index)

        drafts.append({
            "booking_id": booking_id,
            "suggested_time": suggested,
            "rationale": proposal.rationale.strip(),
            "priority": proposal.priority,
            "trainee_available": proposal.trainee_available,
            "instructor_available": proposal.instructor_available,
            "aircraft_available": proposal.aircraft_available,
            "weather_likelihood": proposal.weather_likelihood or "Unknown",
            "created_at": now,
        })

    priorities = sorted(d["priority"] for d in drafts)
    if priorities != list(range(1, CANDIDATE_COUNT + 1)):
        raise CandidateContractError(
            "priorities", f"Priorities must be exactly 1, 2, 3; got {priorities}"
        )

    candidates = [RescheduleCandidate(**d) for d in drafts]
    return sorted(candidates, key=lambda c: c.priority)


def generate_reschedule_candidates(
    booking: Booking,
    evaluation: SafetyEvaluation,
    overlap: list[TimeSlot],
    ranker: Ranker,
    *,
    now: datetime | None = None,
    tz: str = "UTC",
    slot_counts: dict[str, int] | None = None,
) -> list[RescheduleCandidate]:
    """Ask the ranker once for three alternatives and validate them.

    ``slot_counts`` (free slots per resource kind) is only used to say which
    resource was exhausted when there is no overlap.

    Raises:
        NoOverlapError: ``overlap`` is empty; the ranker is not called.
        CandidateContractError: The ranker's response broke the contract.
    """
    if not overlap:
        raise NoOverlapError(booking.id, slot_counts)

    logger.info("Generating reschedule options for %s from %d slots", booking.id, len(overlap))
    proposals = ranker.rank(booking, evaluation, list(overlap))
    candidates = validate_candidates(booking.id, proposals, overlap, now=now, tz=tz)
    logger.info(
        "Validated %d options for %s: %s",
        len(candidates), booking.id,
        ", ".join(c.suggested_time.isoformat() for c in candidates),
    )
    return candidates
