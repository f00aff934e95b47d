"""Database engine configuration and initialization."""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from flightwx.db.models import Base

logger = logging.getLogger(__name__)

# Seconds a writer waits on a locked SQLite file before failing
SQLITE_BUSY_TIMEOUT = 30

_engine: Engine | None = None
SessionLocal: sessionmaker[Session] = sessionmaker()


def resolve_database_url() -> str:
    """Database URL for the current ENVIRONMENT.

    development (default) uses ``$DATA_DIR/flightwx.db``; production
    requires DATABASE_URL.
    """
    if os.environ.get("ENVIRONMENT", "development") == "production":
        url = os.environ.get("DATABASE_URL")
        if not url:
            raise ValueError("DATABASE_URL environment variable must be set in production")
        return url

    data_dir = os.environ.get("DATA_DIR", "data")
    os.makedirs(data_dir, exist_ok=True)
    return f"sqlite:///{data_dir}/flightwx.db"


def build_engine(db_url: str) -> Engine:
    """Create an engine that workflow worker threads can share.

    SQLite files get WAL journaling, a busy timeout and enforced foreign
    keys, so concurrent bookings in one batch serialize their writes
    instead of failing.
    """
    if not db_url.startswith("sqlite"):
        return create_engine(db_url, pool_pre_ping=True)

    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_engine(db_url: str | None = None) -> Engine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        db_url = db_url or resolve_database_url()
        _engine = build_engine(db_url)
        SessionLocal.configure(bind=_engine)
        logger.info("Database engine created: %s", db_url.split("@")[-1])
    return _engine


def reset_engine() -> None:
    """Drop the process-wide engine (for testing)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
    SessionLocal.configure(bind=None)


def init_db(engine: Engine | None = None) -> None:
    """Create all tables. Use in dev mode; prod uses Alembic."""
    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database tables created")
