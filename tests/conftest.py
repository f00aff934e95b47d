"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flightwx.db.engine import build_engine
from flightwx.db.models import Base
from flightwx.models import (
    Aircraft,
    AvailabilityWindow,
    Booking,
    CertificationTier,
    Instructor,
    Location,
    Trainee,
    WeatherObservation,
)
from flightwx.storage.bookings import SqlBookingStore

# Monday 19 October 2026, 06:00 UTC
NOW = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for tests."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    """SqlBookingStore over the in-memory engine."""
    return SqlBookingStore(sessionmaker(bind=db_engine))


@pytest.fixture
def sample_location():
    return Location(name="Palo Alto Airport (KPAO)", lat=37.4611, lon=-122.1150)


@pytest.fixture
def sample_trainee():
    return Trainee(
        id="trainee-1", name="Alex Morgan", email="alex@example.com",
        tier=CertificationTier.STUDENT,
    )


@pytest.fixture
def sample_instructor():
    return Instructor(
        id="instructor-1",
        name="Sam Rivera",
        email="sam@example.com",
        weekly_windows=[
            AvailabilityWindow(weekdays=[0, 1, 2, 3, 4, 5, 6], start_hour=7, end_hour=20),
        ],
    )


@pytest.fixture
def sample_aircraft():
    return Aircraft(id="N12345", model="Cessna 172", availability_pct=100)


@pytest.fixture
def sample_booking(sample_location):
    return Booking(
        id="booking-1",
        trainee_id="trainee-1",
        trainee_name="Alex Morgan",
        instructor_id="instructor-1",
        instructor_name="Sam Rivera",
        aircraft_id="N12345",
        scheduled_time=datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc),
        duration_minutes=120,
        location=sample_location,
        tier=CertificationTier.STUDENT,
    )


@pytest.fixture
def file_store(tmp_path):
    """SqlBookingStore over a WAL SQLite file; safe for concurrent batches."""
    engine = build_engine(f"sqlite:///{tmp_path / 'flightwx.db'}")
    Base.metadata.create_all(engine)
    yield SqlBookingStore(sessionmaker(bind=engine))
    engine.dispose()


@pytest.fixture
def seed(sample_trainee, sample_instructor, sample_aircraft, sample_booking):
    """Load one trainee, instructor, aircraft and booking into a store."""

    def _seed(target: SqlBookingStore) -> SqlBookingStore:
        target.save_trainee(sample_trainee)
        target.save_instructor(sample_instructor)
        target.save_aircraft(sample_aircraft)
        target.save_booking(sample_booking)
        return target

    return _seed


@pytest.fixture
def seeded_store(store, seed):
    """In-memory store holding one trainee, instructor, aircraft and booking."""
    return seed(store)


def make_observation(**overrides) -> WeatherObservation:
    """Benign VFR observation; override any field."""
    values = dict(
        temperature_c=20.0,
        humidity_pct=50.0,
        visibility_m=16093.0,  # 10 sm
        ceiling_ft=None,
        wind_speed_kt=5.0,
        wind_direction_deg=360.0,
        wind_gust_kt=None,
        precipitation=False,
        precipitation_type="none",
        thunderstorm=False,
        icing=False,
        observed_at=NOW,
    )
    values.update(overrides)
    return WeatherObservation(**values)


@pytest.fixture
def clear_observation():
    return make_observation()
