"""Tests for GameTable play operations against an in-memory store."""

import pytest

from game.logic.enums import GamePhase, Role
from game.logic.exceptions import (
    ActiveRoundError,
    NotParticipantError,
    NotPlacerError,
    NotPresenterError,
    RoomNotFoundError,
    WaitingForPlayersError,
)
from game.logic.settings import GameSettings
from game.rooms.repository import room_key
from game.tests.conftest import OUTSIDER, PLACER, PRESENTER


@pytest.fixture
async def room_id(manager, table, settings):
    room = await manager.create_room(PRESENTER, Role.PRESENTER, settings)
    await manager.join_room(PLACER, room.room_id)
    await table.promote_if_ready(room.room_id)
    return room.room_id


async def play_game(table, room_id, moves):
    room = None
    for basket, coin in moves:
        await table.offer_basket(PRESENTER, room_id, basket)
        room = await table.place_coin(PLACER, room_id, coin)
    return room


class TestPromoteIfReady:
    async def test_promotes_once(self, room_id, table, manager):
        room = await manager.get_room(room_id)
        assert room.state.phase == GamePhase.OFFERING
        again = await table.promote_if_ready(room_id)
        assert again == room

    async def test_single_player_stays_waiting(self, manager, table, settings):
        room = await manager.create_room(PRESENTER, Role.PRESENTER, settings)
        room = await table.promote_if_ready(room.room_id)
        assert room.state.phase == GamePhase.WAITING

    async def test_offer_before_promotion_rejected(self, manager, table, settings):
        room = await manager.create_room(PRESENTER, Role.PRESENTER, settings)
        with pytest.raises(WaitingForPlayersError):
            await table.offer_basket(PRESENTER, room.room_id, 0)


class TestPlay:
    async def test_offer_then_place(self, room_id, table):
        room = await table.offer_basket(PRESENTER, room_id, 1)
        assert room.state.current_offered == 1
        room = await table.place_coin(PLACER, room_id, 5)
        assert room.state.baskets[1] == (5,)
        assert room.state.phase == GamePhase.OFFERING

    async def test_move_timestamp_comes_from_clock(self, room_id, table, clock):
        await table.offer_basket(PRESENTER, room_id, 0)
        room = await table.place_coin(PLACER, room_id, 2)
        assert room.state.moves[0].ts == clock.now

    async def test_rejected_move_leaves_record_untouched(self, room_id, table, store):
        before = await store.read(room_key(room_id))
        with pytest.raises(NotPresenterError):
            await table.offer_basket(PLACER, room_id, 0)
        with pytest.raises(NotPlacerError):
            await table.place_coin(PRESENTER, room_id, 1)
        assert await store.read(room_key(room_id)) == before

    async def test_missing_room(self, table):
        with pytest.raises(RoomNotFoundError):
            await table.offer_basket(PRESENTER, "missing", 0)

    async def test_full_game_logs_finish(self, room_id, table, caplog):
        with caplog.at_level("INFO"):
            room = await play_game(table, room_id, [(0, 5), (1, 4), (2, 1), (0, 2), (1, 3)])
        assert room.state.phase == GamePhase.FINISHED
        assert room.state.sums == (7, 7, 1)
        assert "game finished" in caplog.text


class TestResetGame:
    async def test_reset_keeps_settings(self, manager, table):
        room = await manager.create_room(PRESENTER, Role.PRESENTER, GameSettings(coin_count=4, compensation=1))
        await manager.join_room(PLACER, room.room_id)
        await table.promote_if_ready(room.room_id)
        await play_game(table, room.room_id, [(0, 1), (1, 2), (2, 3), (0, 4)])

        room = await table.reset_game(PLACER, room.room_id)
        assert room.state.coin_count == 4
        assert room.state.compensation == 1
        assert room.state.remaining == (1, 2, 3, 4)
        assert room.state.moves == ()
        assert room.state.phase == GamePhase.OFFERING

    async def test_reset_mid_round_rejected(self, room_id, table):
        with pytest.raises(ActiveRoundError):
            await table.reset_game(PRESENTER, room_id)

    async def test_reset_by_outsider_rejected(self, room_id, table):
        await play_game(table, room_id, [(0, 1), (1, 2), (2, 3), (0, 4), (1, 5)])
        with pytest.raises(NotParticipantError):
            await table.reset_game(OUTSIDER, room_id)
