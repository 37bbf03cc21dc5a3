"""Database layer for spendtrack."""

from spendtrack.database.base import Database
from spendtrack.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
