"""SQLAlchemy ORM models for all persistent tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class TraineeRow(Base):
    __tablename__ = "trainees"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), default="")
    email: Mapped[str] = mapped_column(String(256), default="")
    tier: Mapped[str] = mapped_column(String(16))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class InstructorRow(Base):
    __tablename__ = "instructors"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), default="")
    email: Mapped[str] = mapped_column(String(256), default="")
    weekly_windows_json: Mapped[str] = mapped_column(Text, default="[]")


class AircraftRow(Base):
    __tablename__ = "aircraft"

    id: Mapped[str] = mapped_column(String(16), primary_key=True)  # tail number
    model: Mapped[str] = mapped_column(String(64), default="")
    maintenance_weekdays_json: Mapped[str] = mapped_column(Text, default="[]")
    availability_pct: Mapped[int] = mapped_column(Integer, default=65)


class BookingRow(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    trainee_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("trainees.id"), index=True
    )
    trainee_name: Mapped[str] = mapped_column(String(256), default="")
    instructor_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("instructors.id"), index=True
    )
    instructor_name: Mapped[str] = mapped_column(String(256), default="")
    aircraft_id: Mapped[str] = mapped_column(
        String(16), ForeignKey("aircraft.id"), index=True
    )
    scheduled_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=120)
    location_name: Mapped[str] = mapped_column(String(256), default="")
    location_lat: Mapped[float] = mapped_column(Float)
    location_lon: Mapped[float] = mapped_column(Float)
    tier: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16), default="scheduled", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    weather_checks: Mapped[list[WeatherCheckRow]] = relationship(
        back_populates="booking", cascade="all, delete-orphan"
    )
    candidates: Mapped[list[RescheduleCandidateRow]] = relationship(
        back_populates="booking", cascade="all, delete-orphan"
    )


class WeatherCheckRow(Base):
    __tablename__ = "weather_checks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("bookings.id", ondelete="CASCADE"), index=True
    )
    checked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    observation_json: Mapped[str] = mapped_column(Text)
    is_safe: Mapped[bool] = mapped_column(Boolean)
    tier: Mapped[str] = mapped_column(String(16))
    reasons_json: Mapped[str] = mapped_column(Text, default="[]")
    forced: Mapped[bool] = mapped_column(Boolean, default=False)

    booking: Mapped[BookingRow] = relationship(back_populates="weather_checks")


class RescheduleCandidateRow(Base):
    __tablename__ = "reschedule_candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("bookings.id", ondelete="CASCADE"), index=True
    )
    suggested_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    rationale: Mapped[str] = mapped_column(Text)
    priority: Mapped[int] = mapped_column(Integer)
    trainee_available: Mapped[bool] = mapped_column(Boolean, default=True)
    instructor_available: Mapped[bool] = mapped_column(Boolean, default=True)
    aircraft_available: Mapped[bool] = mapped_column(Boolean, default=True)
    weather_likelihood: Mapped[str] = mapped_column(String(256), default="Unknown")
    superseded: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    booking: Mapped[BookingRow] = relationship(back_populates="candidates")


class WorkflowRunRow(Base):
    __tablename__ = "workflow_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    total_bookings: Mapped[int] = mapped_column(Integer, default=0)
    checked_bookings: Mapped[int] = mapped_column(Integer, default=0)
    unsafe_bookings: Mapped[int] = mapped_column(Integer, default=0)
    notifications_sent: Mapped[int] = mapped_column(Integer, default=0)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)
    errors_json: Mapped[str] = mapped_column(Text, default="[]")
    dry_run: Mapped[bool] = mapped_column(Boolean, default=False)
    forced_conflict: Mapped[bool] = mapped_column(Boolean, default=False)


class WorkflowErrorRow(Base):
    __tablename__ = "workflow_errors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(String(64), index=True)
    error: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class NotificationRow(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(String(64), index=True)
    trainee_id: Mapped[str] = mapped_column(String(64), index=True)
    kind: Mapped[str] = mapped_column(String(64))
    recipient: Mapped[str] = mapped_column(String(256))
    subject: Mapped[str] = mapped_column(Text)
    body: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16))
    message_id: Mapped[str | None] = mapped_column(String(256), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
