"""Database connection and session management using SQLModel."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlmodel import SQLModel, create_engine, Session

from .config import DATA_DIR

DB_PATH = DATA_DIR / "picklist.db"
SQLITE_URL = f"sqlite:///{DB_PATH}"

# check_same_thread=False is needed for SQLite if using across threads (FastAPI)
engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})


@contextmanager
def session_scope() -> Iterator[Session]:
    """Open a session on the current engine; callers commit explicitly."""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Create database tables."""
    # Import models to ensure they are registered with SQLModel.metadata
    from . import models  # noqa: F401

    # Enable WAL mode so the service can read while an import writes
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL;")

    SQLModel.metadata.create_all(engine)


def reset_database() -> None:
    """Delete the database file and recreate it."""
    engine.dispose()
    if DB_PATH.exists():
        DB_PATH.unlink()
    init_db()


def get_engine():
    """Return the global engine instance."""
    return engine
