"""Shared-state store: atomic conditional updates on keyed records."""

from shared.store.base import RecordStore
from shared.store.exceptions import StoreError, StoreUnavailableError, TransactionConflictError
from shared.store.memory import InMemoryRecordStore

__all__ = [
    "InMemoryRecordStore",
    "RecordStore",
    "StoreError",
    "StoreUnavailableError",
    "TransactionConflictError",
]
