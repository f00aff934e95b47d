"""Exceptions raised by the reconciliation engine.

Each carries a machine-readable ``code`` and a ``details`` dict so the
workflow can record them without parsing messages.
"""

from __future__ import annotations

from typing import Any, Optional


class FlightwxError(Exception):
    """Base exception for flightwx errors."""

    def __init__(
        self,
        message: str,
        code: str = "FLIGHTWX_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class BookingNotFoundError(FlightwxError):
    """Raised when a booking id is not in the store."""

    def __init__(self, booking_id: str):
        super().__init__(
            message=f"Booking not found: {booking_id}",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class WeatherFetchError(FlightwxError):
    """Raised when the weather provider fails or returns an unusable payload."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message=message, code="WEATHER_FETCH_FAILED", details=details)


class RescheduleError(FlightwxError):
    """Raised when reschedule candidates cannot be produced or accepted."""

    def __init__(
        self,
        message: str,
        code: str = "RESCHEDULE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class NoOverlapError(RescheduleError):
    """No time is free for trainee, instructor and aircraft together."""

    def __init__(self, booking_id: str, slot_counts: Optional[dict[str, int]] = None):
        message = (
            "No overlapping availability found. Trainee, instructor, and "
            "aircraft have no common available times."
        )
        exhausted = [kind for kind, count in (slot_counts or {}).items() if count == 0]
        if exhausted:
            message += f" No free slots for: {', '.join(exhausted)}."
        super().__init__(
            message=message,
            code="NO_OVERLAP",
            details={"booking_id": booking_id, "slot_counts": slot_counts or {}},
        )


class CandidateContractError(RescheduleError):
    """The ranking collaborator's response broke the candidate contract."""

    def __init__(self, rule: str, message: str, candidate_index: Optional[int] = None):
        prefix = f"Candidate {candidate_index}: " if candidate_index is not None else ""
        super().__init__(
            message=f"{prefix}{message}",
            code="CANDIDATE_CONTRACT",
            details={"rule": rule, "candidate_index": candidate_index},
        )
        self.rule = rule
        self.candidate_index = candidate_index


class NotificationError(FlightwxError):
    """Raised by the workflow when a notification could not be delivered."""

    def __init__(self, recipient: str, error: str | None):
        super().__init__(
            message=error or "Failed to send notification",
            code="NOTIFICATION_FAILED",
            details={"recipient": recipient},
        )
