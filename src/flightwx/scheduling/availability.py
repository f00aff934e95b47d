"""Per-resource availability over the reschedule horizon.

Every resource starts from the same hourly grid of fixed-width slots. Each
kind then applies its own eligibility rule, and slots that collide with
existing commitments (plus a turnaround buffer) are removed.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flightwx.config import AvailabilitySettings
from flightwx.interfaces import BookingStore
from flightwx.models import (
    Aircraft,
    CertificationTier,
    Instructor,
    ResourceKind,
    TimeSlot,
)
from flightwx.scheduling.overlap import slots_overlap

logger = logging.getLogger(__name__)

WEEKEND = (5, 6)  # Saturday, Sunday

# Bookings that start before the window can still run into it
COMMITMENT_LOOKBACK = timedelta(hours=24)


def generate_base_slots(
    now: datetime | None = None,
    settings: AvailabilitySettings | None = None,
) -> list[TimeSlot]:
    """Hourly starts between first_hour and last_hour for each day of the horizon.

    Days and hours are local to ``settings.timezone``; returned slots are UTC.
    Slots starting at or before ``now`` are dropped.
    """
    settings = settings or AvailabilitySettings()
    now = now or datetime.now(timezone.utc)
    tz = ZoneInfo(settings.timezone)
    today = now.astimezone(tz).date()
    width = timedelta(hours=settings.slot_hours)

    slots: list[TimeSlot] = []
    for day_offset in range(settings.horizon_days):
        day = today + timedelta(days=day_offset)
        for hour in range(settings.first_hour, settings.last_hour):
            start = datetime.combine(day, time(hour), tzinfo=tz).astimezone(timezone.utc)
            if start > now:
                slots.append(TimeSlot(start=start, end=start + width))
    return slots


def trainee_slot_eligible(tier: CertificationTier, local_start: datetime) -> bool:
    """Tier-driven preferred hours for trainees.

    Student pilots fly afternoons (weekend late mornings too), private pilots
    weekday afternoons and any weekend time; rated pilots are unrestricted.
    """
    hour = local_start.hour
    weekend = local_start.weekday() in WEEKEND
    if tier == CertificationTier.STUDENT:
        return hour >= 14 or (weekend and hour >= 10)
    if tier == CertificationTier.PRIVATE:
        return weekend or hour >= 12
    return True


def instructor_slot_eligible(instructor: Instructor, local_start: datetime) -> bool:
    weekday = local_start.weekday()
    return any(w.contains(weekday, local_start.hour) for w in instructor.weekly_windows)


def aircraft_slot_eligible(aircraft: Aircraft, slot: TimeSlot, local_start: datetime) -> bool:
    """Stable pseudo-random subset of the grid, minus maintenance weekdays."""
    if local_start.weekday() in aircraft.maintenance_weekdays:
        return False
    digest = hashlib.sha256(f"{aircraft.id}|{slot.start.isoformat()}".encode()).hexdigest()
    return int(digest[:8], 16) % 100 < aircraft.availability_pct


def blocked_intervals(
    store: BookingStore,
    kind: ResourceKind,
    resource_id: str,
    window: TimeSlot,
    buffer: timedelta,
    exclude_booking_id: str | None = None,
) -> list[TimeSlot]:
    """Existing commitments expanded by the turnaround buffer."""
    commitments = store.list_commitments(
        kind, resource_id, window.start - COMMITMENT_LOOKBACK, window.end,
        exclude_booking_id=exclude_booking_id,
    )
    return [
        TimeSlot(start=b.scheduled_time, end=b.end_time + buffer)
        for b in commitments
    ]


def resolve_availability(
    store: BookingStore,
    kind: ResourceKind | str,
    resource_id: str,
    tier: CertificationTier | str | None = None,
    exclude_booking_id: str | None = None,
    *,
    now: datetime | None = None,
    settings: AvailabilitySettings | None = None,
) -> list[TimeSlot]:
    """Free slots for one resource, sorted by start.

    An id not present in the registry for ``kind`` yields an empty list.

    Args:
        store: Source of the resource registry and existing commitments.
        kind: trainee, instructor or aircraft.
        resource_id: Registry id of the resource.
        tier: Trainee tier override; defaults to the trainee's registered tier.
        exclude_booking_id: Booking being rescheduled; its own slot is not a conflict.
        now: Reference instant (defaults to current UTC time).
        settings: Grid and buffer settings.
    """
    settings = settings or AvailabilitySettings()
    now = now or datetime.now(timezone.utc)
    kind = ResourceKind(kind)
    tz = ZoneInfo(settings.timezone)

    if kind == ResourceKind.TRAINEE:
        trainee = store.get_trainee(resource_id)
        if trainee is None:
            logger.debug("Unknown trainee %s, no availability", resource_id)
            return []
        trainee_tier = CertificationTier(tier) if tier is not None else trainee.tier

        def eligible(slot: TimeSlot, local: datetime) -> bool:
            return trainee_slot_eligible(trainee_tier, local)

    elif kind == ResourceKind.INSTRUCTOR:
        instructor = store.get_instructor(resource_id)
        if instructor is None:
            logger.debug("Unknown instructor %s, no availability", resource_id)
            return []

        def eligible(slot: TimeSlot, local: datetime) -> bool:
            return instructor_slot_eligible(instructor, local)

    else:
        aircraft = store.get_aircraft(resource_id)
        if aircraft is None:
            logger.debug("Unknown aircraft %s, no availability", resource_id)
            return []

        def eligible(slot: TimeSlot, local: datetime) -> bool:
            return aircraft_slot_eligible(aircraft, slot, local)

    grid = generate_base_slots(now, settings)
    candidates = [s for s in grid if eligible(s, s.start.astimezone(tz))]
    if not candidates:
        return []

    window = TimeSlot(start=candidates[0].start, end=candidates[-1].end)
    blocked = blocked_intervals(
        store, kind, resource_id, window,
        timedelta(minutes=settings.turnaround_buffer_minutes),
        exclude_booking_id=exclude_booking_id,
    )

    free = [s for s in candidates if not any(slots_overlap(s, b) for b in blocked)]
    unique = {s.start: s for s in free}
    result = sorted(unique.values(), key=lambda s: s.start)

    logger.debug(
        "%s %s: %d grid, %d eligible, %d blocked, %d free",
        kind.value, resource_id, len(grid), len(candidates), len(blocked), len(result),
    )
    return result
