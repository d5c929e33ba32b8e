"""SQLite-backed RecordStore."""

from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING, Any

import structlog

from shared.store.base import ABSENT_VERSION, DEFAULT_MAX_RETRIES, RecordStore
from shared.store.exceptions import StoreUnavailableError

if TYPE_CHECKING:
    from shared.db.connection import Database
    from shared.store.base import Record

logger = structlog.get_logger()


class SqliteRecordStore(RecordStore):
    """Stores each record as a JSON row with a version column.

    The compare-and-set is a single conditional UPDATE (or INSERT OR IGNORE
    for a new key), so writers sharing the database file across processes
    are serialized by SQLite itself. Subscriptions only see writes made
    through this instance.
    """

    def __init__(self, db: Database, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        super().__init__(max_retries=max_retries)
        self._db = db

    def _execute(self, sql: str, params: tuple[object, ...]) -> tuple[list[tuple[Any, ...]], int]:
        """Run one statement in its own transaction and return (rows, rowcount)."""
        try:
            cursor = self._db.connection.execute(sql, params)
            rows = cursor.fetchall()
            self._db.connection.commit()
        except (sqlite3.Error, RuntimeError) as e:
            logger.error("record store unavailable", error=str(e))
            raise StoreUnavailableError(str(e)) from e
        return rows, cursor.rowcount

    async def _load(self, key: str) -> tuple[int, Record | None]:
        rows, _ = self._execute("SELECT version, data FROM records WHERE key = ?", (key,))
        if not rows:
            return ABSENT_VERSION, None
        version, data = rows[0]
        return version, json.loads(data)

    async def _compare_and_set(self, key: str, expected_version: int, value: Record) -> int | None:
        data = json.dumps(value)
        new_version = expected_version + 1
        if expected_version == ABSENT_VERSION:
            _, rowcount = self._execute(
                "INSERT OR IGNORE INTO records (key, version, data) VALUES (?, ?, ?)",
                (key, new_version, data),
            )
        else:
            _, rowcount = self._execute(
                "UPDATE records SET version = ?, data = ? WHERE key = ? AND version = ?",
                (new_version, data, key, expected_version),
            )
        return new_version if rowcount == 1 else None

    async def _put(self, key: str, value: Record) -> int:
        rows, _ = self._execute(
            "INSERT INTO records (key, version, data) VALUES (?, 1, ?) "
            "ON CONFLICT(key) DO UPDATE SET version = version + 1, data = excluded.data "
            "RETURNING version",
            (key, json.dumps(value)),
        )
        return rows[0][0]
