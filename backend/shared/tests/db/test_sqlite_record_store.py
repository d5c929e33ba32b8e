"""Tests for the SQLite-specific parts of SqliteRecordStore."""

from __future__ import annotations

import pytest

from shared.db import Database, SqliteRecordStore
from shared.store import StoreUnavailableError


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "records.db")
    database.connect()
    yield database
    database.close()


class TestSqliteRecordStore:
    async def test_records_persist_across_connections(self, tmp_path):
        path = tmp_path / "records.db"
        first = Database(path)
        first.connect()
        await SqliteRecordStore(first).write("rooms/a", {"n": 1})
        first.close()

        second = Database(path)
        second.connect()
        assert await SqliteRecordStore(second).read("rooms/a") == {"n": 1}
        second.close()

    async def test_stale_version_is_rejected(self, db):
        store = SqliteRecordStore(db)
        await store.write("rooms/a", {"n": 1})
        version, _value = await store._load("rooms/a")

        assert await store._compare_and_set("rooms/a", version, {"n": 2}) == version + 1
        assert await store._compare_and_set("rooms/a", version, {"n": 3}) is None
        assert await store.read("rooms/a") == {"n": 2}

    async def test_insert_race_on_new_key(self, db):
        store = SqliteRecordStore(db)
        assert await store._compare_and_set("rooms/a", 0, {"n": 1}) == 1
        assert await store._compare_and_set("rooms/a", 0, {"n": 2}) is None

    async def test_two_stores_share_one_file(self, tmp_path):
        path = tmp_path / "records.db"
        db_a, db_b = Database(path), Database(path)
        db_a.connect()
        db_b.connect()
        store_a, store_b = SqliteRecordStore(db_a), SqliteRecordStore(db_b)

        await store_a.transact("rooms/a", lambda _v: {"n": 1})
        await store_b.transact("rooms/a", lambda v: {"n": v["n"] + 1})
        assert await store_a.read("rooms/a") == {"n": 2}
        db_a.close()
        db_b.close()

    async def test_closed_database_reports_unavailable(self, db):
        store = SqliteRecordStore(db)
        db.close()
        with pytest.raises(StoreUnavailableError):
            await store.read("rooms/a")
        with pytest.raises(StoreUnavailableError):
            await store.transact("rooms/a", lambda _v: {"n": 1})
