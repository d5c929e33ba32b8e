"""Room records in the shared store, keyed under the ``rooms`` namespace."""

from __future__ import annotations

from typing import TYPE_CHECKING

from game.logic.exceptions import RoomNotFoundError
from game.logic.state import Room

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from shared.store import RecordStore
    from shared.store.base import Record

ROOMS_NAMESPACE = "rooms"


def room_key(room_id: str) -> str:
    return f"{ROOMS_NAMESPACE}/{room_id}"


class RoomRepository:
    """Typed access to room records: every update goes through RecordStore.transact."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get(self, room_id: str) -> Room | None:
        record = await self._store.read(room_key(room_id))
        return None if record is None else Room.from_record(record)

    async def require(self, room_id: str) -> Room:
        room = await self.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    async def insert(self, room: Room) -> None:
        """Write a brand-new room. Ids are freshly generated, so nothing can race this."""
        await self._store.write(room_key(room.room_id), room.to_record())

    async def update(self, room_id: str, fn: Callable[[Room], Room]) -> Room:
        """Apply fn to the latest committed room and commit the result atomically.

        fn may run several times under contention and must be pure. Domain
        errors raised by fn abort the update and propagate unchanged.
        """

        def apply(record: Record | None) -> Record:
            if record is None:
                raise RoomNotFoundError(room_id)
            return fn(Room.from_record(record)).to_record()

        committed = await self._store.transact(room_key(room_id), apply)
        return Room.from_record(committed)

    async def watch(
        self,
        room_id: str,
        on_change: Callable[[Room | None], Awaitable[None] | None],
    ) -> Callable[[], None]:
        """Push the current room and every committed change to on_change."""

        def deliver(record: Record | None) -> Awaitable[None] | None:
            return on_change(None if record is None else Room.from_record(record))

        return await self._store.subscribe(room_key(room_id), deliver)
