"""SQLite database layer: connection management and the record store built on it."""

from shared.db.connection import Database
from shared.db.record_store import SqliteRecordStore

__all__ = [
    "Database",
    "SqliteRecordStore",
]
