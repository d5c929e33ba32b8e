"""
Participant-side facade over the room manager and game table.

The presentation layer reads ``room`` (kept current by a live subscription)
and calls the intent methods, each of which returns an IntentResult.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING

import structlog

from game.logic.exceptions import NotInRoomError, UnauthenticatedError
from game.logic.outcome import compute_outcome, describe_outcome
from game.logic.settings import DEFAULT_COIN_COUNT, DEFAULT_COMPENSATION, build_game_settings
from game.session.results import run_intent

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from game.logic.enums import Role
    from game.logic.outcome import GameOutcome
    from game.logic.state import Room
    from game.rooms.manager import RoomManager
    from game.rooms.reconciler import PhaseReconciler
    from game.rooms.table import GameTable
    from game.session.results import IntentResult
    from shared.auth.identity import IdentityProvider

    RoomListener = Callable[[Room | None], Awaitable[None] | None]

logger = structlog.get_logger()


class ChestsClient:
    """One participant's view of one room at a time."""

    def __init__(
        self,
        manager: RoomManager,
        table: GameTable,
        identity: IdentityProvider,
        reconciler: PhaseReconciler | None = None,
    ) -> None:
        self._manager = manager
        self._table = table
        self._identity = identity
        self._reconciler = reconciler
        self._room_id: str | None = None
        self._room: Room | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._listeners: list[RoomListener] = []

    @property
    def room_id(self) -> str | None:
        return self._room_id

    @property
    def room(self) -> Room | None:
        """Latest room snapshot pushed by the store."""
        return self._room

    @property
    def local_role(self) -> Role | None:
        if self._room is None:
            return None
        return self._room.role_of(self._identity.current_identity())

    @property
    def outcome(self) -> GameOutcome | None:
        return None if self._room is None else compute_outcome(self._room.state)

    @property
    def outcome_text(self) -> str | None:
        return None if self._room is None else describe_outcome(self._room)

    def add_listener(self, listener: RoomListener) -> None:
        """Call listener with every room snapshot pushed while attached."""
        self._listeners.append(listener)

    # --- intents ---

    async def create_room(
        self,
        role: Role | None,
        coin_count: int = DEFAULT_COIN_COUNT,
        compensation: int = DEFAULT_COMPENSATION,
        name: str | None = None,
    ) -> IntentResult:
        async def action() -> Room:
            identity = self._require_identity()
            settings = build_game_settings(coin_count, compensation)
            room = await self._manager.create_room(identity, role, settings, name)
            await self._attach(room.room_id)
            return room

        return await run_intent("create_room", action, self._identity.current_identity())

    async def join_room(self, room_id: str, role_hint: Role | None = None) -> IntentResult:
        async def action() -> Room:
            room, _role = await self._manager.join_room(self._require_identity(), room_id, role_hint)
            await self._attach(room_id)
            return room

        return await run_intent("join_room", action, self._identity.current_identity())

    async def leave_room(self) -> IntentResult:
        async def action() -> Room:
            room_id = self._require_room()
            room = await self._manager.leave_room(self._require_identity(), room_id)
            self._detach()
            return room

        return await run_intent("leave_room", action, self._identity.current_identity())

    async def assume_role(
        self,
        role: Role,
        coin_count: int = DEFAULT_COIN_COUNT,
        compensation: int = DEFAULT_COMPENSATION,
        name: str | None = None,
    ) -> IntentResult:
        async def action() -> Room:
            room_id = self._require_room()
            settings = build_game_settings(coin_count, compensation)
            return await self._manager.assume_role(self._require_identity(), room_id, role, settings, name)

        return await run_intent("assume_role", action, self._identity.current_identity())

    async def offer_basket(self, index: int) -> IntentResult:
        async def action() -> Room:
            room_id = self._require_room()
            return await self._table.offer_basket(self._require_identity(), room_id, index)

        return await run_intent("offer_basket", action, self._identity.current_identity())

    async def place_coin(self, value: int) -> IntentResult:
        async def action() -> Room:
            room_id = self._require_room()
            return await self._table.place_coin(self._require_identity(), room_id, value)

        return await run_intent("place_coin", action, self._identity.current_identity())

    async def reset_game(self) -> IntentResult:
        async def action() -> Room:
            room_id = self._require_room()
            return await self._table.reset_game(self._require_identity(), room_id)

        return await run_intent("reset_game", action, self._identity.current_identity())

    def close(self) -> None:
        self._detach()

    # --- subscription ---

    def _require_identity(self) -> str:
        identity = self._identity.current_identity()
        if identity is None:
            raise UnauthenticatedError
        return identity

    def _require_room(self) -> str:
        if self._room_id is None:
            raise NotInRoomError
        return self._room_id

    async def _attach(self, room_id: str) -> None:
        if self._room_id == room_id:
            return
        self._detach()
        self._room_id = room_id
        self._unsubscribe = await self._manager.watch_room(room_id, self._on_room_change)
        if self._reconciler is not None:
            await self._reconciler.watch(room_id)
        logger.debug("attached to room", room_id=room_id)

    def _detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._reconciler is not None and self._room_id is not None:
            self._reconciler.unwatch(self._room_id)
        self._room_id = None
        self._room = None

    async def _on_room_change(self, room: Room | None) -> None:
        self._room = room
        for listener in list(self._listeners):
            result = listener(room)
            if inspect.isawaitable(result):
                await result
