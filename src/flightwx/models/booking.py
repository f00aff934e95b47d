"""Pydantic v2 models for bookings, resources and time slots."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CertificationTier(str, Enum):
    """Trainee certification level, least to most capable."""

    STUDENT = "student"
    PRIVATE = "private"
    INSTRUMENT = "instrument"
    COMMERCIAL = "commercial"

    @property
    def rank(self) -> int:
        return list(CertificationTier).index(self)


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    SCHEDULED = "scheduled"
    CHECKING = "checking"
    CONFLICT = "conflict"
    RESCHEDULED = "rescheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ResourceKind(str, Enum):
    """The three resources a lesson needs at the same time."""

    TRAINEE = "trainee"
    INSTRUCTOR = "instructor"
    AIRCRAFT = "aircraft"


class Location(BaseModel):
    """Departure airfield for a lesson."""

    name: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class TimeSlot(BaseModel):
    """Half-open interval ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> TimeSlot:
        if self.end <= self.start:
            raise ValueError(f"Slot end {self.end} must be after start {self.start}")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: TimeSlot) -> bool:
        """Half-open overlap test: touching intervals do not overlap."""
        return self.start < other.end and other.start < self.end


class Booking(BaseModel):
    """A scheduled lesson tying a trainee, an instructor and an aircraft together."""

    id: str
    trainee_id: str
    trainee_name: str = ""
    instructor_id: str
    instructor_name: str = ""
    aircraft_id: str
    scheduled_time: datetime
    duration_minutes: int = Field(default=120, gt=0)
    location: Location
    tier: CertificationTier
    status: BookingStatus = BookingStatus.SCHEDULED
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def end_time(self) -> datetime:
        return self.scheduled_time + timedelta(minutes=self.duration_minutes)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(start=self.scheduled_time, end=self.end_time)


class Trainee(BaseModel):
    id: str
    name: str
    email: str
    tier: CertificationTier


class AvailabilityWindow(BaseModel):
    """Recurring weekly window; weekdays use 0=Mon..6=Sun, hours are local."""

    weekdays: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)

    @model_validator(mode="after")
    def _check_window(self) -> AvailabilityWindow:
        if self.end_hour <= self.start_hour:
            raise ValueError("Window end_hour must be after start_hour")
        if any(d < 0 or d > 6 for d in self.weekdays):
            raise ValueError(f"Weekdays must be in 0..6, got {self.weekdays}")
        return self

    def contains(self, weekday: int, hour: int) -> bool:
        return weekday in self.weekdays and self.start_hour <= hour < self.end_hour


class Instructor(BaseModel):
    id: str
    name: str
    email: str = ""
    weekly_windows: list[AvailabilityWindow] = Field(default_factory=list)


class Aircraft(BaseModel):
    id: str  # tail number
    model: str = ""
    maintenance_weekdays: list[int] = Field(default_factory=list)
    availability_pct: int = Field(default=65, ge=0, le=100)
