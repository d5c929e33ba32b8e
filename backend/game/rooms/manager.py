"""Room manager: create, join, leave and take roles in a shared room record."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from game.logic import roles
from game.logic.settings import build_display_name

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from game.logic.enums import Role
    from game.logic.settings import GameSettings
    from game.logic.state import Room
    from game.rooms.repository import RoomRepository

logger = structlog.get_logger()


def _new_room_id() -> str:
    return uuid4().hex


class RoomManager:
    """Assigns, swaps and releases the presenter and placer roles.

    Holds no room state of its own: every operation is a single conditional
    update of the room record, so a lost race re-evaluates its guards
    against the winner's result.
    """

    def __init__(
        self,
        repository: RoomRepository,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_room_id,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._id_factory = id_factory

    @property
    def repository(self) -> RoomRepository:
        return self._repository

    async def create_room(
        self,
        identity: str,
        role: Role | None,
        settings: GameSettings,
        display_name: str | None = None,
    ) -> Room:
        display_name = build_display_name(display_name)
        room = roles.new_room(self._id_factory(), identity, role, settings, display_name, self._clock())
        await self._repository.insert(room)
        logger.info(
            "room created",
            room_id=room.room_id,
            identity=identity,
            role=role,
            coin_count=settings.coin_count,
            compensation=settings.compensation,
        )
        return room

    async def get_room(self, room_id: str) -> Room:
        return await self._repository.require(room_id)

    async def join_room(self, identity: str, room_id: str, role_hint: Role | None = None) -> tuple[Room, Role]:
        """Seat identity in the room and return the committed room and its role."""
        now = self._clock()
        room = await self._repository.update(room_id, lambda r: roles.join(r, identity, role_hint, now)[0])
        role = room.role_of(identity)
        if role is None:  # pragma: no cover - join either seats the caller or raises
            raise RuntimeError(f"join committed without seating {identity}")
        logger.info("room joined", room_id=room_id, identity=identity, role=role)
        return room, role

    async def leave_room(self, identity: str, room_id: str) -> Room:
        room = await self._repository.update(room_id, lambda r: roles.leave(r, identity))
        logger.info("room left", room_id=room_id, identity=identity)
        return room

    async def assume_role(
        self,
        identity: str,
        room_id: str,
        role: Role,
        settings: GameSettings,
        display_name: str | None = None,
    ) -> Room:
        """Take role and restart the game with settings (only between rounds)."""
        display_name = build_display_name(display_name)
        now = self._clock()
        room = await self._repository.update(
            room_id,
            lambda r: roles.assume_role(r, identity, role, settings, display_name, now),
        )
        logger.info(
            "role assumed, game restarted",
            room_id=room_id,
            identity=identity,
            role=role,
            phase=room.state.phase,
            coin_count=settings.coin_count,
            compensation=settings.compensation,
        )
        return room

    async def watch_room(
        self,
        room_id: str,
        on_change: Callable[[Room | None], Awaitable[None] | None],
    ) -> Callable[[], None]:
        return await self._repository.watch(room_id, on_change)
