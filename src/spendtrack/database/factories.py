"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from spendtrack.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "SPENDTRACK_DB_PATH"


def default_database_path() -> str:
    """Return the database path from SPENDTRACK_DB_PATH or ~/.spendtrack/spendtrack.db."""
    database_path = os.environ.get(DB_PATH_ENV)
    if database_path:
        return database_path

    db_dir = Path.home() / ".spendtrack"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "spendtrack.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file, or ":memory:" for a
            throwaway in-memory database. If None, checks SPENDTRACK_DB_PATH
            environment variable, then defaults to ~/.spendtrack/spendtrack.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = default_database_path()

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
