"""Pydantic v2 models for reschedule candidates, notifications and workflow runs."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProposedCandidate(BaseModel):
    """One suggestion as returned by the ranking collaborator, before validation."""

    suggested_time: str = Field(description="ISO-8601 start time copied from the slot list")
    rationale: str = Field(description="Two or three factual sentences")
    priority: int = Field(description="1 = best, 3 = least preferred")
    weather_likelihood: str = Field(default="Unknown", description="Short phrase")
    trainee_available: bool = True
    instructor_available: bool = True
    aircraft_available: bool = True


class RankingResponse(BaseModel):
    """Structured output schema requested from the ranking model."""

    options: list[ProposedCandidate]


class RescheduleCandidate(BaseModel):
    """A validated alternative time for an unsafe booking."""

    id: Optional[int] = None
    booking_id: str
    suggested_time: datetime
    rationale: str
    priority: int = Field(ge=1, le=3)
    trainee_available: bool = True
    instructor_available: bool = True
    aircraft_available: bool = True
    weather_likelihood: str = "Unknown"
    created_at: datetime


class SendResult(BaseModel):
    """Outcome reported by a notification dispatcher."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


NotificationKind = Literal["weather_alert_with_reschedule", "confirmation"]


class NotificationRecord(BaseModel):
    id: Optional[int] = None
    booking_id: str
    trainee_id: str
    kind: NotificationKind
    recipient: str
    subject: str
    body: str
    status: Literal["sent", "failed"]
    message_id: Optional[str] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None


class WorkflowRun(BaseModel):
    """Summary of one batch reconciliation run; frozen once built."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    started_at: datetime
    total_bookings: int = 0
    checked_bookings: int = 0
    unsafe_bookings: int = 0
    notifications_sent: int = 0
    duration_ms: int = 0
    errors: list[str] = Field(default_factory=list)
    dry_run: bool = False
    forced_conflict: bool = False
