"""Database package: SQLAlchemy models and engine."""

from flightwx.db.engine import SessionLocal, get_engine, init_db
from flightwx.db.models import Base

__all__ = ["Base", "SessionLocal", "get_engine", "init_db"]
