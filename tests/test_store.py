"""Tests for the database-backed booking store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_observation
from flightwx.exceptions import BookingNotFoundError
from flightwx.models import (
    Aircraft,
    BookingStatus,
    CertificationTier,
    NotificationRecord,
    RescheduleCandidate,
    ResourceKind,
    WeatherCheckRecord,
    WorkflowRun,
)


def at(day: int, hour: int) -> datetime:
    return datetime(2026, 10, day, hour, tzinfo=timezone.utc)


def candidate(priority: int, hour: int, now: datetime) -> RescheduleCandidate:
    return RescheduleCandidate(
        booking_id="booking-1",
        suggested_time=at(20, hour),
        rationale=f"Option {priority}",
        priority=priority,
        created_at=now,
    )


class TestResources:
    def test_round_trip(self, seeded_store, sample_trainee, sample_instructor, sample_aircraft):
        assert seeded_store.get_trainee("trainee-1") == sample_trainee
        assert seeded_store.get_instructor("instructor-1") == sample_instructor
        assert seeded_store.get_aircraft("N12345") == sample_aircraft

    def test_missing_resources_return_none(self, store):
        assert store.get_trainee("nobody") is None
        assert store.get_instructor("nobody") is None
        assert store.get_aircraft("N0000") is None

    def test_save_updates_existing(self, seeded_store):
        seeded_store.save_aircraft(
            Aircraft(id="N12345", model="Cessna 172", availability_pct=40, maintenance_weekdays=[2])
        )
        aircraft = seeded_store.get_aircraft("N12345")
        assert aircraft.availability_pct == 40
        assert aircraft.maintenance_weekdays == [2]


class TestBookings:
    def test_round_trip_keeps_utc(self, seeded_store, sample_booking):
        loaded = seeded_store.get_booking("booking-1")
        assert loaded.scheduled_time == sample_booking.scheduled_time
        assert loaded.scheduled_time.tzinfo is not None
        assert loaded.location == sample_booking.location
        assert loaded.tier == CertificationTier.STUDENT
        assert loaded.status == BookingStatus.SCHEDULED

    def test_get_missing_raises(self, store):
        with pytest.raises(BookingNotFoundError) as exc_info:
            store.get_booking("nope")
        assert exc_info.value.details == {"booking_id": "nope"}

    def test_update_status_and_time(self, seeded_store):
        seeded_store.update_booking_status("booking-1", BookingStatus.CONFIRMED, at(21, 9))
        loaded = seeded_store.get_booking("booking-1")
        assert loaded.status == BookingStatus.CONFIRMED
        assert loaded.scheduled_time == at(21, 9)

    def test_update_missing_raises(self, store):
        with pytest.raises(BookingNotFoundError):
            store.update_booking_status("nope", BookingStatus.CHECKING)

    def test_due_bookings_filters_window_and_status(self, seeded_store, now):
        due = seeded_store.list_due_bookings(
            now, now + timedelta(hours=24), [BookingStatus.SCHEDULED],
        )
        assert [b.id for b in due] == ["booking-1"]

        assert seeded_store.list_due_bookings(
            now, now + timedelta(hours=2), [BookingStatus.SCHEDULED],
        ) == []

        seeded_store.update_booking_status("booking-1", BookingStatus.CONFLICT)
        assert seeded_store.list_due_bookings(
            now, now + timedelta(hours=24), [BookingStatus.SCHEDULED, BookingStatus.CONFIRMED],
        ) == []

    def test_commitments_by_resource(self, seeded_store, now):
        end = now + timedelta(days=7)
        for kind, resource_id in [
            (ResourceKind.TRAINEE, "trainee-1"),
            (ResourceKind.INSTRUCTOR, "instructor-1"),
            (ResourceKind.AIRCRAFT, "N12345"),
        ]:
            commitments = seeded_store.list_commitments(kind, resource_id, now, end)
            assert [b.id for b in commitments] == ["booking-1"]

        assert seeded_store.list_commitments(
            ResourceKind.AIRCRAFT, "N12345", now, end, exclude_booking_id="booking-1",
        ) == []

    def test_cancelled_booking_is_not_a_commitment(self, seeded_store, now):
        seeded_store.update_booking_status("booking-1", BookingStatus.CANCELLED)
        assert seeded_store.list_commitments(
            ResourceKind.AIRCRAFT, "N12345", now, now + timedelta(days=7),
        ) == []


class TestAudit:
    def test_weather_checks_append(self, seeded_store, now):
        record = WeatherCheckRecord(
            booking_id="booking-1",
            checked_at=now,
            observation=make_observation(wind_speed_kt=15),
            is_safe=False,
            tier=CertificationTier.STUDENT,
            reasons=["Wind speed 15kt exceeds maximum 10kt"],
            forced=True,
        )
        saved = seeded_store.save_weather_check(record)
        seeded_store.save_weather_check(record.model_copy(update={"forced": False}))

        assert saved.id is not None
        checks = seeded_store.list_weather_checks("booking-1")
        assert len(checks) == 2
        assert checks[0].observation.wind_speed_kt == 15
        assert checks[0].reasons == record.reasons
        assert checks[0].forced is True
        assert checks[1].forced is False

    def test_new_candidates_supersede_old(self, seeded_store, now):
        first = seeded_store.save_reschedule_candidates(
            "booking-1", [candidate(1, 9, now), candidate(2, 14, now), candidate(3, 16, now)],
        )
        assert all(c.id is not None for c in first)

        second = seeded_store.save_reschedule_candidates(
            "booking-1", [candidate(2, 10, now), candidate(1, 11, now), candidate(3, 12, now)],
        )
        live = seeded_store.list_reschedule_candidates("booking-1")
        assert [c.priority for c in live] == [1, 2, 3]
        assert {c.id for c in live} == {c.id for c in second}
        assert live[0].suggested_time == at(20, 11)

    def test_workflow_runs_newest_first(self, store, now):
        store.save_workflow_run(WorkflowRun(started_at=now, total_bookings=1))
        store.save_workflow_run(
            WorkflowRun(started_at=now, total_bookings=2, errors=["boom"], dry_run=True)
        )
        runs = store.list_workflow_runs()
        assert [r.total_bookings for r in runs] == [2, 1]
        assert runs[0].errors == ["boom"]
        assert runs[0].dry_run is True
        assert len(store.list_workflow_runs(limit=1)) == 1

    def test_error_log(self, store):
        store.log_workflow_error("booking-1", "first")
        store.log_workflow_error("booking-1", "second")
        store.log_workflow_error("booking-2", "other")
        assert store.list_workflow_errors("booking-1") == ["first", "second"]

    def test_notification_log(self, store, now):
        saved = store.log_notification(
            NotificationRecord(
                booking_id="booking-1",
                trainee_id="trainee-1",
                kind="confirmation",
                recipient="alex@example.com",
                subject="Flight Confirmed",
                body="See you there.",
                status="sent",
                message_id="<abc@example.com>",
                sent_at=now,
            )
        )
        assert saved.id is not None
        logged = store.list_notifications("booking-1")
        assert len(logged) == 1
        assert logged[0].message_id == "<abc@example.com>"
        assert logged[0].sent_at == now
