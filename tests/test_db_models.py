"""Tests for SQLAlchemy rows, cascades and engine setup."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flightwx.db.engine import SessionLocal, build_engine, get_engine, init_db, reset_engine
from flightwx.db.models import (
    AircraftRow,
    BookingRow,
    InstructorRow,
    RescheduleCandidateRow,
    TraineeRow,
    WeatherCheckRow,
)

WHEN = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def booking_row(db_session):
    db_session.add_all([
        TraineeRow(id="t1", name="Alex", email="alex@example.com", tier="student"),
        InstructorRow(id="i1", name="Sam"),
        AircraftRow(id="N1"),
    ])
    db_session.flush()
    row = BookingRow(
        id="b1", trainee_id="t1", instructor_id="i1", aircraft_id="N1",
        scheduled_time=WHEN, location_name="KPAO", location_lat=37.46, location_lon=-122.11,
        tier="student",
    )
    db_session.add(row)
    db_session.flush()
    return row


class TestBookingRow:
    def test_defaults(self, db_session, booking_row):
        loaded = db_session.get(BookingRow, "b1")
        assert loaded.status == "scheduled"
        assert loaded.duration_minutes == 120
        assert loaded.created_at is not None

    def test_unknown_aircraft_rejected(self, db_session, booking_row):
        db_session.add(BookingRow(
            id="b2", trainee_id="t1", instructor_id="i1", aircraft_id="N999",
            scheduled_time=WHEN, location_lat=0, location_lon=0, tier="student",
        ))
        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_delete_booking_cascades_audit(self, db_session, booking_row):
        booking_row.weather_checks.append(
            WeatherCheckRow(observation_json="{}", is_safe=False, tier="student")
        )
        booking_row.candidates.append(
            RescheduleCandidateRow(suggested_time=WHEN, rationale="Later", priority=1)
        )
        db_session.flush()

        db_session.delete(booking_row)
        db_session.flush()

        assert db_session.query(WeatherCheckRow).count() == 0
        assert db_session.query(RescheduleCandidateRow).count() == 0


class TestEngine:
    def test_dev_engine_uses_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        reset_engine()
        try:
            engine = get_engine()
            assert str(engine.url).endswith("flightwx.db")
            assert get_engine() is engine

            init_db()
            assert "bookings" in inspect(engine).get_table_names()
            with SessionLocal() as session:
                assert session.get(TraineeRow, "nobody") is None
        finally:
            reset_engine()

    def test_production_requires_url(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        reset_engine()
        with pytest.raises(ValueError, match="DATABASE_URL"):
            get_engine()

    def test_sqlite_file_uses_wal(self, tmp_path):
        engine = build_engine(f"sqlite:///{tmp_path / 'wal.db'}")
        try:
            with engine.connect() as conn:
                assert conn.exec_driver_sql("PRAGMA journal_mode").scalar() == "wal"
                assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1
        finally:
            engine.dispose()
