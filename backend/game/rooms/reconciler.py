"""Promotes waiting rooms to offering as soon as both roles are filled.

Reacts to committed room changes instead of polling. Several observers may
react to the same change; the promotion itself is idempotent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from game.logic.enums import GamePhase
from game.logic.exceptions import ChestsError
from shared.store.exceptions import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.logic.state import Room
    from game.rooms.repository import RoomRepository
    from game.rooms.table import GameTable

logger = structlog.get_logger()


class PhaseReconciler:
    def __init__(self, repository: RoomRepository, table: GameTable) -> None:
        self._repository = repository
        self._table = table
        self._unsubscribers: dict[str, Callable[[], None]] = {}  # room_id -> unsubscribe

    @property
    def watched_rooms(self) -> set[str]:
        return set(self._unsubscribers)

    async def watch(self, room_id: str) -> None:
        if room_id in self._unsubscribers:
            return

        async def on_change(room: Room | None) -> None:
            await self._reconcile(room_id, room)

        # Slot reserved before subscribing; a concurrent watch() of the same room returns early.
        def placeholder() -> None:
            pass

        self._unsubscribers[room_id] = placeholder
        try:
            unsubscribe = await self._repository.watch(room_id, on_change)
        except BaseException:
            if self._unsubscribers.get(room_id) is placeholder:
                del self._unsubscribers[room_id]
            raise

        if self._unsubscribers.get(room_id) is placeholder:
            self._unsubscribers[room_id] = unsubscribe
        else:
            # unwatch() ran while subscribing.
            unsubscribe()

    def unwatch(self, room_id: str) -> None:
        unsubscribe = self._unsubscribers.pop(room_id, None)
        if unsubscribe is not None:
            unsubscribe()

    def close(self) -> None:
        for room_id in list(self._unsubscribers):
            self.unwatch(room_id)

    async def _reconcile(self, room_id: str, room: Room | None) -> None:
        if room is None or room.state.phase != GamePhase.WAITING or not room.both_roles_filled:
            return
        try:
            await self._table.promote_if_ready(room_id)
        except (ChestsError, StoreError) as e:
            logger.warning("phase promotion failed", room_id=room_id, error=str(e))
