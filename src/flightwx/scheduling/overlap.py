"""Tri-resource overlap filter over slot lists."""

from __future__ import annotations

from flightwx.models import TimeSlot


def slots_overlap(a: TimeSlot, b: TimeSlot) -> bool:
    """Half-open overlap: ``a.start < b.end and b.start < a.end``."""
    return a.start < b.end and b.start < a.end


def intersect(a: list[TimeSlot], b: list[TimeSlot], c: list[TimeSlot]) -> list[TimeSlot]:
    """Slots from ``a`` that overlap at least one slot of ``b`` and one of ``c``.

    This filters candidates rather than merging intervals: returned slots
    keep their original boundaries from ``a``. All three grids are assumed
    to share the same hourly quantization.
    """
    if not a or not b or not c:
        return []

    return [
        slot for slot in a
        if any(slots_overlap(slot, other) for other in b)
        and any(slots_overlap(slot, other) for other in c)
    ]
