"""Tests for the tri-resource overlap filter."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from flightwx.models import TimeSlot
from flightwx.scheduling.overlap import intersect, slots_overlap


def slot(start_hour: int, end_hour: int, day: int = 20) -> TimeSlot:
    return TimeSlot(
        start=datetime(2026, 10, day, start_hour, tzinfo=timezone.utc),
        end=datetime(2026, 10, day, end_hour, tzinfo=timezone.utc),
    )


def test_scenario_keeps_slot_from_first_list():
    """09-11, 09-11, 10-12 intersect to the first list's 09-11 slot."""
    result = intersect([slot(9, 11)], [slot(9, 11)], [slot(10, 12)])
    assert result == [slot(9, 11)]


def test_empty_input_yields_empty():
    assert intersect([], [slot(9, 11)], [slot(9, 11)]) == []
    assert intersect([slot(9, 11)], [], [slot(9, 11)]) == []
    assert intersect([slot(9, 11)], [slot(9, 11)], []) == []


def test_touching_slots_do_not_overlap():
    """Half-open intervals: 09-11 and 11-13 share no time."""
    assert not slots_overlap(slot(9, 11), slot(11, 13))
    assert intersect([slot(9, 11)], [slot(11, 13)], [slot(9, 11)]) == []


def test_slot_needs_overlap_with_both_other_lists():
    a = [slot(9, 11), slot(13, 15), slot(15, 17)]
    b = [slot(10, 12), slot(14, 16)]
    c = [slot(14, 16), slot(8, 10)]
    assert intersect(a, b, c) == [slot(9, 11), slot(13, 15), slot(15, 17)]

    c_late = [slot(16, 18)]
    assert intersect(a, b, c_late) == []


def test_result_is_subset_of_first_list_in_order():
    a = [slot(9, 11), slot(10, 12), slot(11, 13)]
    everything = [slot(7, 18)]
    assert intersect(a, everything, everything) == a


def test_different_days_do_not_overlap():
    assert intersect([slot(9, 11, day=20)], [slot(9, 11, day=21)], [slot(9, 11, day=20)]) == []


def test_slot_end_must_follow_start():
    with pytest.raises(ValidationError):
        slot(11, 9)
