"""Tests for reschedule candidate validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from conftest import make_observation
from flightwx.analysis.safety import evaluate_safety
from flightwx.exceptions import CandidateContractError, NoOverlapError
from flightwx.models import CertificationTier, ProposedCandidate, TimeSlot
from flightwx.reschedule.validator import (
    generate_reschedule_candidates,
    parse_suggested_time,
    validate_candidates,
)


def at(day: int, hour: int) -> datetime:
    return datetime(2026, 10, day, hour, tzinfo=timezone.utc)


OVERLAP = [
    TimeSlot(start=at(day, hour), end=at(day, hour) + timedelta(hours=2))
    for day in (19, 20, 21)
    for hour in (9, 14, 16)
]


def proposal(
    start: datetime | str, priority: int, rationale: str = "Calm winds forecast."
) -> ProposedCandidate:
    suggested = start if isinstance(start, str) else start.isoformat()
    return ProposedCandidate(suggested_time=suggested, rationale=rationale, priority=priority)


def good_proposals() -> list[ProposedCandidate]:
    return [
        proposal(at(20, 14), 2),
        proposal(at(19, 16), 1),
        proposal(at(21, 9), 3),
    ]


@pytest.fixture
def unsafe_evaluation():
    return evaluate_safety(make_observation(wind_speed_kt=15), CertificationTier.STUDENT)


def test_valid_response_sorted_by_priority(now):
    candidates = validate_candidates("booking-1", good_proposals(), OVERLAP, now=now)
    assert [c.priority for c in candidates] == [1, 2, 3]
    assert candidates[0].suggested_time == at(19, 16)
    assert all(c.booking_id == "booking-1" for c in candidates)
    assert all(c.created_at == now for c in candidates)


def test_every_candidate_is_an_overlap_start(now):
    starts = {s.start for s in OVERLAP}
    candidates = validate_candidates("booking-1", good_proposals(), OVERLAP, now=now)
    assert {c.suggested_time for c in candidates} <= starts


def test_fabricated_time_rejected(now):
    proposals = good_proposals()
    proposals[2] = proposal(at(21, 10), 3)  # not a slot start
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", proposals, OVERLAP, now=now)
    assert exc_info.value.rule == "not_in_overlap"
    assert exc_info.value.candidate_index == 3


def test_too_many_options_rejected(now):
    proposals = good_proposals() + [proposal(at(20, 9), 3)]
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", proposals, OVERLAP, now=now)
    assert exc_info.value.rule == "count"
    assert exc_info.value.candidate_index is None


def test_too_few_options_rejected(now):
    with pytest.raises(CandidateContractError, match="got 2"):
        validate_candidates("booking-1", good_proposals()[:2], OVERLAP, now=now)


def test_duplicate_priority_rejected(now):
    proposals = good_proposals()
    proposals[2] = proposal(at(21, 9), 2)
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", proposals, OVERLAP, now=now)
    assert exc_info.value.rule == "priorities"


def test_unparseable_timestamp_rejected(now):
    proposals = good_proposals()
    proposals[0] = proposal("next tuesday afternoon", 2)
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", proposals, OVERLAP, now=now)
    assert exc_info.value.rule == "timestamp"
    assert exc_info.value.candidate_index == 1


def test_past_time_rejected():
    """A slot that has already started is outside the window."""
    later = at(20, 15)
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", good_proposals(), OVERLAP, now=later)
    assert exc_info.value.rule == "window"
    assert "in the past" in str(exc_info.value)


def test_beyond_seven_days_rejected(now):
    far = TimeSlot(start=at(27, 9), end=at(27, 11))
    proposals = good_proposals()
    proposals[2] = proposal(far.start, 3)
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", proposals, [*OVERLAP, far], now=now)
    assert exc_info.value.rule == "window"


def test_outside_operating_hours_rejected(now):
    night = TimeSlot(start=at(20, 19), end=at(20, 21))
    proposals = good_proposals()
    proposals[0] = proposal(night.start, 2)
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates("booking-1", proposals, [*OVERLAP, night], now=now)
    assert exc_info.value.rule == "operating_hours"


def test_operating_hours_use_configured_zone(now):
    """14:00 UTC is 07:00 in Los Angeles, 09:00 UTC is 02:00 there."""
    with pytest.raises(CandidateContractError) as exc_info:
        validate_candidates(
            "booking-1", good_proposals(), OVERLAP, now=now, tz="America/Los_Angeles",
        )
    assert exc_info.value.rule == "operating_hours"
    assert exc_info.value.candidate_index == 3


def test_blank_rationale_rejected(now):
    proposals = good_proposals()
    proposals[1] = proposal(at(19, 16), 1, rationale="   ")
    with pytest.raises(CandidateContractError, match="Missing reasoning"):
        validate_candidates("booking-1", proposals, OVERLAP, now=now)


def test_rationale_is_stripped(now):
    proposals = good_proposals()
    proposals[1] = proposal(at(19, 16), 1, rationale="  Lighter winds.  ")
    candidates = validate_candidates("booking-1", proposals, OVERLAP, now=now)
    assert candidates[0].rationale == "Lighter winds."


def test_parse_suggested_time_variants():
    assert parse_suggested_time("2026-10-20T14:00:00Z") == at(20, 14)
    assert parse_suggested_time("2026-10-20T14:00:00") == at(20, 14)
    assert parse_suggested_time("2026-10-20T16:00:00+02:00") == at(20, 14)
    with pytest.raises(ValueError):
        parse_suggested_time("soon")


def test_empty_overlap_skips_ranker(sample_booking, unsafe_evaluation, now):
    ranker = MagicMock()
    with pytest.raises(NoOverlapError) as exc_info:
        generate_reschedule_candidates(sample_booking, unsafe_evaluation, [], ranker, now=now)
    ranker.rank.assert_not_called()
    assert exc_info.value.code == "NO_OVERLAP"
    assert "No overlapping availability" in exc_info.value.message


def test_generate_calls_ranker_once(sample_booking, unsafe_evaluation, now):
    ranker = MagicMock()
    ranker.rank.return_value = good_proposals()
    candidates = generate_reschedule_candidates(
        sample_booking, unsafe_evaluation, OVERLAP, ranker, now=now,
    )
    ranker.rank.assert_called_once()
    assert ranker.rank.call_args.args[2] == OVERLAP
    assert len(candidates) == 3


def test_generate_propagates_contract_errors(sample_booking, unsafe_evaluation, now):
    ranker = MagicMock()
    ranker.rank.return_value = good_proposals()[:1]
    with pytest.raises(CandidateContractError):
        generate_reschedule_candidates(
            sample_booking, unsafe_evaluation, OVERLAP, ranker, now=now,
        )


def test_no_overlap_names_exhausted_resource(sample_booking, unsafe_evaluation, now):
    counts = {"trainee": 12, "instructor": 40, "aircraft": 0}
    with pytest.raises(NoOverlapError) as exc_info:
        generate_reschedule_candidates(
            sample_booking, unsafe_evaluation, [], MagicMock(), now=now, slot_counts=counts,
        )
    assert exc_info.value.details["slot_counts"] == counts
    assert exc_info.value.message.endswith("No free slots for: aircraft.")
