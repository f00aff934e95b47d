"""Interfaces of the external collaborators the engine consumes.

Concrete implementations live in ``storage``, ``fetch``, ``reschedule.ranking``,
``notify`` and ``events``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from flightwx.models import (
    Aircraft,
    Booking,
    BookingStatus,
    Instructor,
    NotificationRecord,
    ProposedCandidate,
    RescheduleCandidate,
    ResourceKind,
    SafetyEvaluation,
    SendResult,
    TimeSlot,
    Trainee,
    WeatherCheckRecord,
    WeatherObservation,
    WorkflowRun,
)


@runtime_checkable
class BookingStore(Protocol):
    """Persistent store of bookings, resources and audit records."""

    def list_due_bookings(
        self, start: datetime, end: datetime, statuses: Sequence[BookingStatus]
    ) -> list[Booking]: ...

    def get_booking(self, booking_id: str) -> Booking: ...

    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        scheduled_time: datetime | None = None,
    ) -> None: ...

    def get_trainee(self, trainee_id: str) -> Trainee | None: ...

    def get_instructor(self, instructor_id: str) -> Instructor | None: ...

    def get_aircraft(self, aircraft_id: str) -> Aircraft | None: ...

    def list_commitments(
        self,
        kind: ResourceKind,
        resource_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> list[Booking]: ...

    def save_weather_check(self, record: WeatherCheckRecord) -> WeatherCheckRecord: ...

    def save_reschedule_candidates(
        self, booking_id: str, candidates: list[RescheduleCandidate]
    ) -> list[RescheduleCandidate]: ...

    def list_reschedule_candidates(self, booking_id: str) -> list[RescheduleCandidate]: ...

    def save_workflow_run(self, run: WorkflowRun) -> WorkflowRun: ...

    def log_workflow_error(self, booking_id: str, error: str) -> None: ...

    def log_notification(self, record: NotificationRecord) -> NotificationRecord: ...


@runtime_checkable
class WeatherProvider(Protocol):
    def fetch(self, lat: float, lon: float) -> WeatherObservation: ...


@runtime_checkable
class Ranker(Protocol):
    """Phrases and ranks alternative times chosen from the overlap set."""

    def rank(
        self, booking: Booking, evaluation: SafetyEvaluation, slots: list[TimeSlot]
    ) -> list[ProposedCandidate]: ...


@runtime_checkable
class NotificationDispatcher(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> SendResult: ...
