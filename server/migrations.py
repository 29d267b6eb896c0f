"""Alembic migration helpers for Picklist.

This is the only module in the project that imports alembic directly.
The CLI (`serve`, `migrate`) goes through the functions below.
"""

from __future__ import annotations

import shutil
from typing import Optional

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from . import database
from .config import PROJECT_ROOT
from .logging_config import get_logger

logger = get_logger(__name__)


def _alembic_cfg() -> AlembicConfig:
    """Build an AlembicConfig that points at our alembic.ini."""
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    # Absolute script_location so the CLI works from any working directory
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return cfg


def _backup_db() -> None:
    """Copy picklist.db → picklist.db.bak (overwrite previous backup)."""
    if database.DB_PATH.exists():
        shutil.copy2(database.DB_PATH, database.DB_PATH.with_suffix(".db.bak"))


def _current_revision() -> Optional[str]:
    if not database.DB_PATH.exists():
        return None
    with database.get_engine().connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def _has_version_table() -> bool:
    if not database.DB_PATH.exists():
        return False
    return inspect(database.get_engine()).has_table("alembic_version")


def run_migrations(backup: bool = True) -> None:
    """Run ``alembic upgrade head``, copying the database aside first if asked."""
    if backup:
        _backup_db()
    alembic_command.upgrade(_alembic_cfg(), "head")


def stamp_if_needed() -> None:
    """Stamp a database created by ``init_db`` (create_all) to head.

    No-op when the file does not exist or is already under alembic.
    """
    if not database.DB_PATH.exists() or _has_version_table():
        return
    logger.info("Stamping unversioned database at head")
    alembic_command.stamp(_alembic_cfg(), "head")


def get_status() -> tuple[str | None, str]:
    """Return (current_revision, head_revision).

    current_revision is None when the DB does not exist or was never stamped.
    """
    script = ScriptDirectory.from_config(_alembic_cfg())
    head_rev: str = script.get_current_head() or "unknown"
    return _current_revision(), head_rev
