"""Database-backed BookingStore for bookings, resources and audit records."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from flightwx.db.models import (
    AircraftRow,
    BookingRow,
    InstructorRow,
    NotificationRow,
    RescheduleCandidateRow,
    TraineeRow,
    WeatherCheckRow,
    WorkflowErrorRow,
    WorkflowRunRow,
)
from flightwx.exceptions import BookingNotFoundError
from flightwx.models import (
    Aircraft,
    AvailabilityWindow,
    Booking,
    BookingStatus,
    CertificationTier,
    Instructor,
    Location,
    NotificationRecord,
    RescheduleCandidate,
    ResourceKind,
    Trainee,
    WeatherCheckRecord,
    WorkflowRun,
)

logger = logging.getLogger(__name__)

# Statuses that still hold a resource
_ACTIVE_STATUSES = (
    BookingStatus.SCHEDULED.value,
    BookingStatus.CHECKING.value,
    BookingStatus.CONFLICT.value,
    BookingStatus.RESCHEDULED.value,
    BookingStatus.CONFIRMED.value,
)


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; everything is stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Conversion helpers ---


def _booking_to_row(booking: Booking) -> BookingRow:
    return BookingRow(
        id=booking.id,
        trainee_id=booking.trainee_id,
        trainee_name=booking.trainee_name,
        instructor_id=booking.instructor_id,
        instructor_name=booking.instructor_name,
        aircraft_id=booking.aircraft_id,
        scheduled_time=_as_utc(booking.scheduled_time),
        duration_minutes=booking.duration_minutes,
        location_name=booking.location.name,
        location_lat=booking.location.lat,
        location_lon=booking.location.lon,
        tier=booking.tier.value,
        status=booking.status.value,
        created_at=_as_utc(booking.created_at) or _utcnow(),
        updated_at=_as_utc(booking.updated_at) or _utcnow(),
    )


def _row_to_booking(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        trainee_id=row.trainee_id,
        trainee_name=row.trainee_name,
        instructor_id=row.instructor_id,
        instructor_name=row.instructor_name,
        aircraft_id=row.aircraft_id,
        scheduled_time=_as_utc(row.scheduled_time),
        duration_minutes=row.duration_minutes,
        location=Location(name=row.location_name, lat=row.location_lat, lon=row.location_lon),
        tier=CertificationTier(row.tier),
        status=BookingStatus(row.status),
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _row_to_trainee(row: TraineeRow) -> Trainee:
    return Trainee(id=row.id, name=row.name, email=row.email, tier=CertificationTier(row.tier))


def _row_to_instructor(row: InstructorRow) -> Instructor:
    windows = [AvailabilityWindow.model_validate(w) for w in json.loads(row.weekly_windows_json)]
    return Instructor(id=row.id, name=row.name, email=row.email, weekly_windows=windows)


def _row_to_aircraft(row: AircraftRow) -> Aircraft:
    return Aircraft(
        id=row.id,
        model=row.model,
        maintenance_weekdays=json.loads(row.maintenance_weekdays_json),
        availability_pct=row.availability_pct,
    )


def _row_to_candidate(row: RescheduleCandidateRow) -> RescheduleCandidate:
    return RescheduleCandidate(
        id=row.id,
        booking_id=row.booking_id,
        suggested_time=_as_utc(row.suggested_time),
        rationale=row.rationale,
        priority=row.priority,
        trainee_available=row.trainee_available,
        instructor_available=row.instructor_available,
        aircraft_available=row.aircraft_available,
        weather_likelihood=row.weather_likelihood,
        created_at=_as_utc(row.created_at),
    )


def _row_to_weather_check(row: WeatherCheckRow) -> WeatherCheckRecord:
    return WeatherCheckRecord(
        id=row.id,
        booking_id=row.booking_id,
        checked_at=_as_utc(row.checked_at),
        observation=json.loads(row.observation_json),
        is_safe=row.is_safe,
        tier=CertificationTier(row.tier),
        reasons=json.loads(row.reasons_json),
        forced=row.forced,
    )


class SqlBookingStore:
    """BookingStore over SQLAlchemy.

    Every call opens its own short-lived session from ``session_factory``,
    so one instance can be shared by the workflow's worker threads.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    # --- Resources ---

    def save_trainee(self, trainee: Trainee) -> None:
        """Insert or update a trainee."""
        with self._session_factory() as session, session.begin():
            session.merge(
                TraineeRow(
                    id=trainee.id, name=trainee.name, email=trainee.email,
                    tier=trainee.tier.value,
                )
            )

    def save_instructor(self, instructor: Instructor) -> None:
        """Insert or update an instructor."""
        with self._session_factory() as session, session.begin():
            session.merge(
                InstructorRow(
                    id=instructor.id,
                    name=instructor.name,
                    email=instructor.email,
                    weekly_windows_json=json.dumps(
                        [w.model_dump() for w in instructor.weekly_windows]
                    ),
                )
            )

    def save_aircraft(self, aircraft: Aircraft) -> None:
        """Insert or update an aircraft."""
        with self._session_factory() as session, session.begin():
            session.merge(
                AircraftRow(
                    id=aircraft.id,
                    model=aircraft.model,
                    maintenance_weekdays_json=json.dumps(aircraft.maintenance_weekdays),
                    availability_pct=aircraft.availability_pct,
                )
            )

    def get_trainee(self, trainee_id: str) -> Trainee | None:
        with self._session_factory() as session:
            row = session.get(TraineeRow, trainee_id)
            return _row_to_trainee(row) if row else None

    def get_instructor(self, instructor_id: str) -> Instructor | None:
        with self._session_factory() as session:
            row = session.get(InstructorRow, instructor_id)
            return _row_to_instructor(row) if row else None

    def get_aircraft(self, aircraft_id: str) -> Aircraft | None:
        with self._session_factory() as session:
            row = session.get(AircraftRow, aircraft_id)
            return _row_to_aircraft(row) if row else None

    # --- Bookings ---

    def save_booking(self, booking: Booking) -> None:
        """Insert or update a booking."""
        with self._session_factory() as session, session.begin():
            session.merge(_booking_to_row(booking))

    def get_booking(self, booking_id: str) -> Booking:
        """Load a booking by ID. Raises BookingNotFoundError if not found."""
        with self._session_factory() as session:
            row = session.get(BookingRow, booking_id)
            if row is None:
                raise BookingNotFoundError(booking_id)
            return _row_to_booking(row)

    def list_due_bookings(
        self, start: datetime, end: datetime, statuses: Sequence[BookingStatus]
    ) -> list[Booking]:
        """Bookings with ``start <= scheduled_time <= end`` in one of ``statuses``."""
        stmt = (
            select(BookingRow)
            .where(
                BookingRow.scheduled_time >= _as_utc(start),
                BookingRow.scheduled_time <= _as_utc(end),
                BookingRow.status.in_([s.value for s in statuses]),
            )
            .order_by(BookingRow.scheduled_time)
        )
        with self._session_factory() as session:
            rows = session.execute(stmt).scalars().all()
            return [_row_to_booking(r) for r in rows]

    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        scheduled_time: datetime | None = None,
    ) -> None:
        """Transition a booking, optionally moving it. Raises BookingNotFoundError."""
        with self._session_factory() as session, session.begin():
            row = session.get(BookingRow, booking_id)
            if row is None:
                raise BookingNotFoundError(booking_id)
            row.status = status.value
            if scheduled_time is not None:
                row.scheduled_time = _as_utc(scheduled_time)
            row.updated_at = _utcnow()
        logger.debug("Booking %s -> %s", booking_id, status.value)

    def list_commitments(
        self,
        kind: ResourceKind,
        resource_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> list[Booking]:
        """Active bookings of a resource starting within ``[start, end]``."""
        column = {
            ResourceKind.TRAINEE: BookingRow.trainee_id,
            ResourceKind.INSTRUCTOR: BookingRow.instructor_id,
            ResourceKind.AIRCRAFT: BookingRow.aircraft_id,
        }[kind]
        stmt = select(BookingRow).where(
            column == resource_id,
            BookingRow.scheduled_time >= _as_utc(start),
            BookingRow.scheduled_time <= _as_utc(end),
            BookingRow.status.in_(_ACTIVE_STATUSES),
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(BookingRow.id != exclude_booking_id)
        with self._session_factory() as session:
            rows = session.execute(stmt.order_by(BookingRow.scheduled_time)).scalars().all()
            return [_row_to_booking(r) for r in rows]

    # --- Weather checks ---

    def save_weather_check(self, record: WeatherCheckRecord) -> WeatherCheckRecord:
        row = WeatherCheckRow(
            booking_id=record.booking_id,
            checked_at=_as_utc(record.checked_at),
            observation_json=record.observation.model_dump_json(),
            is_safe=record.is_safe,
            tier=record.tier.value,
            reasons_json=json.dumps(record.reasons),
            forced=record.forced,
        )
        with self._session_factory() as session, session.begin():
            session.add(row)
            session.flush()
            return record.model_copy(update={"id": row.id})

    def list_weather_checks(self, booking_id: str) -> list[WeatherCheckRecord]:
        """All checks for a booking, oldest first."""
        stmt = (
            select(WeatherCheckRow)
            .where(WeatherCheckRow.booking_id == booking_id)
            .order_by(WeatherCheckRow.id)
        )
        with self._session_factory() as session:
            return [_row_to_weather_check(r) for r in session.execute(stmt).scalars().all()]

    # --- Reschedule candidates ---

    def save_reschedule_candidates(
        self, booking_id: str, candidates: list[RescheduleCandidate]
    ) -> list[RescheduleCandidate]:
        """Replace the live candidate set for a booking; returns them with ids."""
        with self._session_factory() as session, session.begin():
            session.execute(
                update(RescheduleCandidateRow)
                .where(
                    RescheduleCandidateRow.booking_id == booking_id,
                    RescheduleCandidateRow.superseded.is_(False),
                )
                .values(superseded=True)
            )
            rows = [
                RescheduleCandidateRow(
                    booking_id=booking_id,
                    suggested_time=_as_utc(c.suggested_time),
                    rationale=c.rationale,
                    priority=c.priority,
                    trainee_available=c.trainee_available,
                    instructor_available=c.instructor_available,
                    aircraft_available=c.aircraft_available,
                    weather_likelihood=c.weather_likelihood,
                    created_at=_as_utc(c.created_at),
                )
                for c in candidates
            ]
            session.add_all(rows)
            session.flush()
            return [_row_to_candidate(r) for r in rows]

    def list_reschedule_candidates(self, booking_id: str) -> list[RescheduleCandidate]:
        """Live (non-superseded) candidates for a booking, by priority."""
        stmt = (
            select(RescheduleCandidateRow)
            .where(
                RescheduleCandidateRow.booking_id == booking_id,
                RescheduleCandidateRow.superseded.is_(False),
            )
            .order_by(RescheduleCandidateRow.priority)
        )
        with self._session_factory() as session:
            return [_row_to_candidate(r) for r in session.execute(stmt).scalars().all()]

    # --- Run bookkeeping ---

    def save_workflow_run(self, run: WorkflowRun) -> WorkflowRun:
        row = WorkflowRunRow(
            started_at=_as_utc(run.started_at),
            total_bookings=run.total_bookings,
            checked_bookings=run.checked_bookings,
            unsafe_bookings=run.unsafe_bookings,
            notifications_sent=run.notifications_sent,
            duration_ms=run.duration_ms,
            errors_json=json.dumps(run.errors),
            dry_run=run.dry_run,
            forced_conflict=run.forced_conflict,
        )
        with self._session_factory() as session, session.begin():
            session.add(row)
            session.flush()
            return run.model_copy(update={"id": row.id})

    def list_workflow_runs(self, limit: int = 20) -> list[WorkflowRun]:
        """Most recent runs first."""
        stmt = select(WorkflowRunRow).order_by(WorkflowRunRow.id.desc()).limit(limit)
        with self._session_factory() as session:
            return [
                WorkflowRun(
                    id=r.id,
                    started_at=_as_utc(r.started_at),
                    total_bookings=r.total_bookings,
                    checked_bookings=r.checked_bookings,
                    unsafe_bookings=r.unsafe_bookings,
                    notifications_sent=r.notifications_sent,
                    duration_ms=r.duration_ms,
                    errors=json.loads(r.errors_json),
                    dry_run=r.dry_run,
                    forced_conflict=r.forced_conflict,
                )
                for r in session.execute(stmt).scalars().all()
            ]

    def log_workflow_error(self, booking_id: str, error: str) -> None:
        with self._session_factory() as session, session.begin():
            session.add(WorkflowErrorRow(booking_id=booking_id, error=error))

    def list_workflow_errors(self, booking_id: str) -> list[str]:
        stmt = (
            select(WorkflowErrorRow.error)
            .where(WorkflowErrorRow.booking_id == booking_id)
            .order_by(WorkflowErrorRow.id)
        )
        with self._session_factory() as session:
            return list(session.execute(stmt).scalars().all())

    def log_notification(self, record: NotificationRecord) -> NotificationRecord:
        row = NotificationRow(
            booking_id=record.booking_id,
            trainee_id=record.trainee_id,
            kind=record.kind,
            recipient=record.recipient,
            subject=record.subject,
            body=record.body,
            status=record.status,
            message_id=record.message_id,
            error=record.error,
            sent_at=_as_utc(record.sent_at),
        )
        with self._session_factory() as session, session.begin():
            session.add(row)
            session.flush()
            return record.model_copy(update={"id": row.id})

    def list_notifications(self, booking_id: str) -> list[NotificationRecord]:
        stmt = (
            select(NotificationRow)
            .where(NotificationRow.booking_id == booking_id)
            .order_by(NotificationRow.id)
        )
        with self._session_factory() as session:
            return [
                NotificationRecord(
                    id=r.id,
                    booking_id=r.booking_id,
                    trainee_id=r.trainee_id,
                    kind=r.kind,
                    recipient=r.recipient,
                    subject=r.subject,
                    body=r.body,
                    status=r.status,
                    message_id=r.message_id,
                    error=r.error,
                    sent_at=_as_utc(r.sent_at),
                )
                for r in session.execute(stmt).scalars().all()
            ]
