"""Keyed record store with atomic conditional updates and live subscriptions.

Records are JSON-compatible dicts. Every committed write bumps a per-key
version; ``transact`` uses that version for optimistic compare-and-set, so
concurrent writers are serialized without locks held across the update
function.
"""

from __future__ import annotations

import contextlib
import copy
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from shared.store.exceptions import TransactionConflictError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Record = dict[str, Any]
    UpdateFn = Callable[[Record | None], Record | None]
    ChangeCallback = Callable[[Record | None], Awaitable[None] | None]

logger = structlog.get_logger()

DEFAULT_MAX_RETRIES = 25

# Version of a key that has never been written.
ABSENT_VERSION = 0


@dataclass
class _Subscription:
    key: str
    on_change: ChangeCallback
    last_version: int = -1
    active: bool = True


class RecordStore(ABC):
    """Abstract shared-state store: read, write, transact, subscribe."""

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self._max_retries = max_retries
        self._subscriptions: dict[str, list[_Subscription]] = {}

    @abstractmethod
    async def _load(self, key: str) -> tuple[int, Record | None]:
        """Return (version, value); (ABSENT_VERSION, None) for a missing key."""

    @abstractmethod
    async def _compare_and_set(self, key: str, expected_version: int, value: Record) -> int | None:
        """Store value if the key is still at expected_version.

        Return the new version, or None when another writer got there first.
        """

    @abstractmethod
    async def _put(self, key: str, value: Record) -> int:
        """Store value unconditionally and return the new version."""

    async def read(self, key: str) -> Record | None:
        _version, value = await self._load(key)
        return value

    async def write(self, key: str, value: Record) -> None:
        """Unconditional write, reserved for initialization."""
        version = await self._put(key, copy.deepcopy(value))
        await self._notify(key, version, value)

    async def transact(self, key: str, fn: UpdateFn) -> Record | None:
        """Apply fn to the latest value and commit its result atomically.

        fn receives a private copy of the current value (None when absent)
        and must be pure: it is re-run against the fresh value whenever a
        concurrent writer wins the race. Any exception raised by fn aborts
        the transaction without writing. Returning a value equal to the
        current one commits nothing.
        """
        for attempt in range(1, self._max_retries + 1):
            version, current = await self._load(key)
            updated = fn(copy.deepcopy(current))
            if updated is None or updated == current:
                return current
            new_version = await self._compare_and_set(key, version, copy.deepcopy(updated))
            if new_version is not None:
                await self._notify(key, new_version, updated)
                return updated
            logger.debug("transaction lost race, retrying", key=key, attempt=attempt)

        logger.warning("transaction retries exhausted", key=key, attempts=self._max_retries)
        raise TransactionConflictError(key, self._max_retries)

    async def subscribe(self, key: str, on_change: ChangeCallback) -> Callable[[], None]:
        """Deliver the current value now and every committed value afterwards.

        Returns an unsubscribe callable. A subscriber never receives a value
        older than one it has already been given.
        """
        subscription = _Subscription(key=key, on_change=on_change)
        self._subscriptions.setdefault(key, []).append(subscription)

        def unsubscribe() -> None:
            subscription.active = False
            subscribers = self._subscriptions.get(key, [])
            with contextlib.suppress(ValueError):
                subscribers.remove(subscription)
            if not subscribers:
                self._subscriptions.pop(key, None)

        version, value = await self._load(key)
        await self._deliver(subscription, version, value)
        return unsubscribe

    def subscriber_count(self, key: str) -> int:
        return len(self._subscriptions.get(key, []))

    async def _notify(self, key: str, version: int, value: Record | None) -> None:
        for subscription in list(self._subscriptions.get(key, [])):
            await self._deliver(subscription, version, value)

    async def _deliver(self, subscription: _Subscription, version: int, value: Record | None) -> None:
        if not subscription.active or version <= subscription.last_version:
            return
        subscription.last_version = version
        try:
            result = subscription.on_change(copy.deepcopy(value))
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("error in store subscriber", key=subscription.key)
