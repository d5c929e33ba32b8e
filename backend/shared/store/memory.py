"""Process-local RecordStore."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from shared.store.base import ABSENT_VERSION, DEFAULT_MAX_RETRIES, RecordStore

if TYPE_CHECKING:
    from shared.store.base import Record


class InMemoryRecordStore(RecordStore):
    """Versioned records held in a dict. State is lost on restart."""

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        super().__init__(max_retries=max_retries)
        self._records: dict[str, tuple[int, Record]] = {}  # key -> (version, value)

    async def _load(self, key: str) -> tuple[int, Record | None]:
        entry = self._records.get(key)
        if entry is None:
            return ABSENT_VERSION, None
        version, value = entry
        return version, copy.deepcopy(value)

    async def _compare_and_set(self, key: str, expected_version: int, value: Record) -> int | None:
        current_version = self._records.get(key, (ABSENT_VERSION, None))[0]
        if current_version != expected_version:
            return None
        self._records[key] = (current_version + 1, value)
        return current_version + 1

    async def _put(self, key: str, value: Record) -> int:
        version = self._records.get(key, (ABSENT_VERSION, None))[0] + 1
        self._records[key] = (version, value)
        return version

    def keys(self, prefix: str = "") -> list[str]:
        return [key for key in self._records if key.startswith(prefix)]
