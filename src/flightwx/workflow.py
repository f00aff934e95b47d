"""Weather-check reconciliation workflow, shared by the CLI and schedulers.

Orchestrates: due bookings → weather → safety → (unsafe) availability →
overlap → reschedule candidates → notification. Each booking is isolated:
a failure is recorded against the run and the booking is restored to
``scheduled``; the run itself always completes and is persisted.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from flightwx.analysis.safety import evaluate_safety
from flightwx.config import WorkflowSettings
from flightwx.events import EventSink, LoggingEventSink, WorkflowEvent
from flightwx.exceptions import NotificationError, RescheduleError
from flightwx.interfaces import BookingStore, NotificationDispatcher, Ranker, WeatherProvider
from flightwx.models import (
    Booking,
    BookingStatus,
    NotificationKind,
    NotificationRecord,
    RescheduleCandidate,
    ResourceKind,
    SafetyEvaluation,
    WeatherCheckRecord,
    WorkflowRun,
)
from flightwx.notify.messages import build_confirmation, build_weather_alert
from flightwx.reschedule.validator import generate_reschedule_candidates
from flightwx.scheduling.availability import resolve_availability
from flightwx.scheduling.overlap import intersect

logger = logging.getLogger(__name__)

DUE_STATUSES = (BookingStatus.SCHEDULED, BookingStatus.CONFIRMED)

FORCED_CONFLICT_REASONS = [
    "TEST MODE: Simulated unsafe conditions",
    "Wind speed 25kt exceeds maximum 10kt (forced for testing)",
    "This is a test conflict to demonstrate the reschedule flow",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WorkflowOptions:
    """Options for one run; None falls back to WorkflowSettings."""

    booking_ids: list[str] | None = None
    hours_ahead: int | None = None
    batch_size: int | None = None
    dry_run: bool = False  # no notifications are sent
    force_conflict: bool = False  # treat every safe result as unsafe

    def __post_init__(self) -> None:
        for name in ("hours_ahead", "batch_size"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be at least 1, got {value}")


@dataclass
class WorkflowDependencies:
    """Collaborators injected into the workflow."""

    store: BookingStore
    weather: WeatherProvider
    ranker: Ranker
    dispatcher: NotificationDispatcher
    events: EventSink = field(default_factory=LoggingEventSink)
    settings: WorkflowSettings = field(default_factory=WorkflowSettings)
    clock: Callable[[], datetime] = _utcnow

    def emit(
        self, operation: str, outcome: str, booking_id: str | None = None, **detail
    ) -> None:
        self.events.emit(WorkflowEvent(
            operation=operation, outcome=outcome, booking_id=booking_id, detail=detail,
        ))


@dataclass
class BookingOutcome:
    """What happened to one booking that was processed without error."""

    booking_id: str
    is_safe: bool
    candidates: list[RescheduleCandidate] = field(default_factory=list)
    notifications_sent: int = 0


def _force_unsafe(evaluation: SafetyEvaluation) -> SafetyEvaluation:
    return evaluation.model_copy(update={
        "is_safe": False,
        "hazards": list(FORCED_CONFLICT_REASONS),
        "violations": [],
        "reasoning": (
            f"Flight is UNSAFE for {evaluation.tier.value} pilot. Conflict forced for testing."
        ),
    })


def _notify(
    deps: WorkflowDependencies,
    booking: Booking,
    kind: NotificationKind,
    subject: str,
    body: str,
) -> NotificationRecord:
    """Send to the trainee and log the attempt, whatever its result."""
    trainee = deps.store.get_trainee(booking.trainee_id)
    recipient = trainee.email if trainee else ""
    result = deps.dispatcher.send(recipient, subject, body)
    record = NotificationRecord(
        booking_id=booking.id,
        trainee_id=booking.trainee_id,
        kind=kind,
        recipient=recipient,
        subject=subject,
        body=body,
        status="sent" if result.success else "failed",
        message_id=result.message_id,
        error=result.error,
        sent_at=deps.clock() if result.success else None,
    )
    deps.store.log_notification(record)
    deps.emit(
        "notification", "success" if result.success else "failure", booking.id,
        kind=kind, recipient=recipient, error=result.error,
    )
    return record


def process_booking(
    deps: WorkflowDependencies,
    booking: Booking,
    options: WorkflowOptions,
) -> BookingOutcome:
    """Check one booking and, when unsafe, produce and send reschedule options.

    Raises whatever the collaborators raise; the caller restores state.
    """
    settings = deps.settings
    now = deps.clock()

    observation = deps.weather.fetch(booking.location.lat, booking.location.lon)
    evaluation = evaluate_safety(observation, booking.tier, runway_heading=settings.runway_heading)

    forced = options.force_conflict and evaluation.is_safe
    if forced:
        logger.info("Forcing booking %s to conflict", booking.id)
        evaluation = _force_unsafe(evaluation)

    deps.store.save_weather_check(
        WeatherCheckRecord(
            booking_id=booking.id,
            checked_at=now,
            observation=observation,
            is_safe=evaluation.is_safe,
            tier=booking.tier,
            reasons=evaluation.reasons,
            forced=forced,
        )
    )
    deps.emit(
        "weather_check", "safe" if evaluation.is_safe else "unsafe", booking.id,
        reasons=evaluation.reasons, forced=forced,
    )

    if evaluation.is_safe:
        logger.info("Weather is safe for %s (%s)", booking.id, booking.tier.value)
        deps.store.update_booking_status(booking.id, BookingStatus.SCHEDULED)
        return BookingOutcome(booking_id=booking.id, is_safe=True)

    logger.info("Weather is UNSAFE for %s: %s", booking.id, "; ".join(evaluation.reasons))
    deps.store.update_booking_status(booking.id, BookingStatus.CONFLICT)

    availability = {
        kind: resolve_availability(
            deps.store, kind, resource_id,
            tier=booking.tier,
            exclude_booking_id=booking.id,
            now=now,
            settings=settings.availability,
        )
        for kind, resource_id in (
            (ResourceKind.TRAINEE, booking.trainee_id),
            (ResourceKind.INSTRUCTOR, booking.instructor_id),
            (ResourceKind.AIRCRAFT, booking.aircraft_id),
        )
    }
    overlap = intersect(
        availability[ResourceKind.TRAINEE],
        availability[ResourceKind.INSTRUCTOR],
        availability[ResourceKind.AIRCRAFT],
    )
    slot_counts = {kind.value: len(slots) for kind, slots in availability.items()}
    deps.emit("availability", "success", booking.id, overlap=len(overlap), **slot_counts)

    candidates = generate_reschedule_candidates(
        booking, evaluation, overlap, deps.ranker,
        now=now, tz=settings.timezone, slot_counts=slot_counts,
    )
    candidates = deps.store.save_reschedule_candidates(booking.id, candidates)
    deps.emit("reschedule_options", "success", booking.id, count=len(candidates))

    if options.dry_run:
        deps.emit("notification", "skipped", booking.id, reason="dry_run")
        return BookingOutcome(booking_id=booking.id, is_safe=False, candidates=candidates)

    subject, body = build_weather_alert(booking, evaluation, candidates, settings.timezone)
    record = _notify(deps, booking, "weather_alert_with_reschedule", subject, body)
    if record.status != "sent":
        raise NotificationError(record.recipient, record.error)

    return BookingOutcome(
        booking_id=booking.id, is_safe=False, candidates=candidates, notifications_sent=1,
    )


def _restore_scheduled(deps: WorkflowDependencies, booking_id: str) -> None:
    try:
        deps.store.update_booking_status(booking_id, BookingStatus.SCHEDULED)
    except Exception as exc:
        logger.error("Failed to restore booking %s to scheduled: %s", booking_id, exc)
        deps.emit("restore_status", "failure", booking_id, error=str(exc))


def _record_failure(
    deps: WorkflowDependencies, booking: Booking, exc: Exception, errors: list[str]
) -> None:
    message = f"{booking.trainee_name} ({booking.id}): {exc}"
    logger.error("Error processing booking %s: %s", booking.id, exc)
    errors.append(message)
    _restore_scheduled(deps, booking.id)
    try:
        deps.store.log_workflow_error(booking.id, str(exc))
    except Exception as log_exc:
        logger.error("Failed to log error for %s: %s", booking.id, log_exc)
    deps.emit(
        "process_booking", "failure", booking.id,
        error=str(exc), error_type=type(exc).__name__,
        code=getattr(exc, "code", None),
    )


def run_weather_check_workflow(
    deps: WorkflowDependencies,
    options: WorkflowOptions | None = None,
) -> WorkflowRun:
    """Run one reconciliation pass over the bookings due in the next hours.

    Bookings are processed in sequential batches; bookings within a batch run
    concurrently and every one of them settles before the next batch starts.
    Never raises for per-booking failures.
    """
    options = options or WorkflowOptions()
    settings = deps.settings
    hours_ahead = settings.hours_ahead if options.hours_ahead is None else options.hours_ahead
    batch_size = settings.batch_size if options.batch_size is None else options.batch_size

    started_at = deps.clock()
    t0 = time.monotonic()
    errors: list[str] = []
    total = checked = unsafe = sent = 0

    deps.emit("workflow", "started", dry_run=options.dry_run, force_conflict=options.force_conflict)

    try:
        bookings = deps.store.list_due_bookings(
            started_at, started_at + timedelta(hours=hours_ahead), DUE_STATUSES,
        )
        if options.booking_ids:
            wanted = set(options.booking_ids)
            bookings = [b for b in bookings if b.id in wanted]
        total = len(bookings)
        logger.info("Found %d bookings due in the next %dh", total, hours_ahead)

        for booking in bookings:
            try:
                deps.store.update_booking_status(booking.id, BookingStatus.CHECKING)
            except Exception as exc:
                logger.error("Failed to set checking status for %s: %s", booking.id, exc)
                deps.emit("mark_checking", "failure", booking.id, error=str(exc))

        batches = [bookings[i:i + batch_size] for i in range(0, total, batch_size)]
        for index, batch in enumerate(batches, 1):
            logger.info("Processing batch %d/%d (%d bookings)", index, len(batches), len(batch))
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                futures = [(b, pool.submit(process_booking, deps, b, options)) for b in batch]
                for booking, future in futures:
                    try:
                        outcome = future.result()
                    except Exception as exc:
                        _record_failure(deps, booking, exc, errors)
                        continue
                    checked += 1
                    if not outcome.is_safe:
                        unsafe += 1
                        sent += outcome.notifications_sent
                    deps.emit("process_booking", "success", booking.id, is_safe=outcome.is_safe)
            logger.info(
                "Batch %d/%d complete: %d/%d processed, %d conflicts so far",
                index, len(batches), checked, total, unsafe,
            )
    except Exception as exc:
        logger.exception("Workflow failed")
        errors.append(f"Workflow failed: {exc}")
        deps.emit("workflow", "failure", error=str(exc))

    run = WorkflowRun(
        started_at=started_at,
        total_bookings=total,
        checked_bookings=checked,
        unsafe_bookings=unsafe,
        notifications_sent=sent,
        duration_ms=int((time.monotonic() - t0) * 1000),
        errors=errors,
        dry_run=options.dry_run,
        forced_conflict=options.force_conflict,
    )
    try:
        run = deps.store.save_workflow_run(run)
    except Exception as exc:
        logger.error("Failed to persist workflow run: %s", exc)
        deps.emit("save_run", "failure", error=str(exc))

    logger.info(
        "Summary: %d/%d checked, %d unsafe, %d notifications, %d errors (%dms)",
        run.checked_bookings, run.total_bookings, run.unsafe_bookings,
        run.notifications_sent, len(run.errors), run.duration_ms,
    )
    deps.emit("workflow", "success" if not errors else "failure", **run.model_dump(
        mode="json", include={"total_bookings", "checked_bookings", "unsafe_bookings",
                              "notifications_sent", "duration_ms"},
    ))
    return run


def accept_reschedule(
    deps: WorkflowDependencies, booking_id: str, candidate_id: int
) -> Booking:
    """Move a conflicted booking to one of its live candidates and confirm it.

    Raises:
        BookingNotFoundError: Unknown booking.
        RescheduleError: Booking not in conflict, or candidate not live for it.
    """
    booking = deps.store.get_booking(booking_id)
    if booking.status != BookingStatus.CONFLICT:
        raise RescheduleError(
            f"Booking {booking_id} is {booking.status.value}, not in conflict",
            code="INVALID_STATUS",
            details={"booking_id": booking_id, "status": booking.status.value},
        )

    candidate = next(
        (c for c in deps.store.list_reschedule_candidates(booking_id) if c.id == candidate_id),
        None,
    )
    if candidate is None:
        raise RescheduleError(
            f"Reschedule option {candidate_id} not found for booking {booking_id}",
            code="CANDIDATE_NOT_FOUND",
            details={"booking_id": booking_id, "candidate_id": candidate_id},
        )

    deps.store.update_booking_status(
        booking_id, BookingStatus.CONFIRMED, scheduled_time=candidate.suggested_time,
    )
    updated = deps.store.get_booking(booking_id)
    logger.info("Booking %s confirmed at %s", booking_id, candidate.suggested_time.isoformat())
    deps.emit(
        "accept_reschedule", "success", booking_id,
        candidate_id=candidate_id, scheduled_time=candidate.suggested_time.isoformat(),
    )

    subject, body = build_confirmation(updated, deps.settings.timezone)
    try:
        _notify(deps, updated, "confirmation", subject, body)
    except Exception as exc:
        # Booking is already confirmed; a lost email does not undo it
        logger.error("Confirmation notification failed for %s: %s", booking_id, exc)
        deps.emit("notification", "failure", booking_id, kind="confirmation", error=str(exc))

    return updated
