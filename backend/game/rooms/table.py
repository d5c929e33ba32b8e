"""Game table: the play operations of a room, each one conditional update."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from game.logic.exceptions import NotParticipantError
from game.logic.outcome import compute_outcome
from game.logic.settings import GameSettings
from game.logic.state_machine import offer_basket, place_coin, promote_if_ready, restart_game

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.logic.state import Room
    from game.rooms.repository import RoomRepository

logger = structlog.get_logger()


def _reset(room: Room, identity: str) -> Room:
    if room.role_of(identity) is None:
        raise NotParticipantError
    settings = GameSettings(coin_count=room.state.coin_count, compensation=room.state.compensation)
    return restart_game(room, settings)


class GameTable:
    """Offer, place, reset and phase promotion against the shared room record."""

    def __init__(self, repository: RoomRepository, clock: Callable[[], float] = time.time) -> None:
        self._repository = repository
        self._clock = clock

    async def offer_basket(self, identity: str, room_id: str, basket: int) -> Room:
        room = await self._repository.update(room_id, lambda r: offer_basket(r, basket, identity))
        logger.info("basket offered", room_id=room_id, basket=basket, turn=room.state.turn + 1)
        return room

    async def place_coin(self, identity: str, room_id: str, coin: int) -> Room:
        now = self._clock()
        room = await self._repository.update(room_id, lambda r: place_coin(r, coin, identity, now=now))
        state = room.state
        logger.info("coin placed", room_id=room_id, coin=coin, turn=state.turn, sums=state.sums)

        outcome = compute_outcome(state)
        if outcome is not None:
            logger.info(
                "game finished",
                room_id=room_id,
                winner=outcome.winner,
                placer_score=outcome.placer_score,
                presenter_score=outcome.presenter_score,
            )
        return room

    async def reset_game(self, identity: str, room_id: str) -> Room:
        """Restart with the current coin count and compensation (only between rounds)."""
        room = await self._repository.update(room_id, lambda r: _reset(r, identity))
        logger.info("game reset", room_id=room_id, identity=identity, phase=room.state.phase)
        return room

    async def promote_if_ready(self, room_id: str) -> Room:
        """waiting -> offering once both roles are filled; a no-op otherwise."""
        room = await self._repository.update(room_id, promote_if_ready)
        logger.debug("phase reconciled", room_id=room_id, phase=room.state.phase)
        return room
