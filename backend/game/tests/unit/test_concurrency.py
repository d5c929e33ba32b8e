"""Racing intents: each conditional update re-evaluates its guards after losing a race."""

import asyncio

import pytest

from game.logic.enums import ErrorCode, GamePhase, Role
from game.logic.exceptions import AlreadyOfferedError, CoinUnavailableError, NoBasketOfferedError, RoomFullError
from game.logic.settings import GameSettings
from game.logic.state import Room
from game.rooms.manager import RoomManager
from game.rooms.repository import RoomRepository
from game.rooms.table import GameTable
from game.session.results import run_intent
from game.tests.conftest import OUTSIDER, PLACER, PRESENTER, FakeClock
from shared.store import InMemoryRecordStore


class YieldingRecordStore(InMemoryRecordStore):
    """Yields to the event loop between load and compare-and-set, like a networked store."""

    def __init__(self, max_retries: int = 25) -> None:
        super().__init__(max_retries=max_retries)
        self.attempts = 0

    async def _load(self, key):
        loaded = await super()._load(key)
        self.attempts += 1
        await asyncio.sleep(0)
        return loaded


class InterferingRecordStore(InMemoryRecordStore):
    """Another writer commits between every load and compare-and-set."""

    async def _load(self, key):
        version, value = await super()._load(key)
        if value is not None:
            await self._put(key, value)
        return version, value


class ReofferingRecordStore(InMemoryRecordStore):
    """Runs one pending callback between a load and its compare-and-set."""

    def __init__(self) -> None:
        super().__init__()
        self.before_commit = None

    async def _load(self, key):
        loaded = await super()._load(key)
        callback, self.before_commit = self.before_commit, None
        if callback is not None:
            await callback()
        return loaded


def build(store):
    repository = RoomRepository(store)
    clock = FakeClock()
    return RoomManager(repository, clock=clock, id_factory=lambda: "room1"), GameTable(repository, clock=clock)


@pytest.fixture
async def yielding():
    store = YieldingRecordStore()
    manager, table = build(store)
    await manager.create_room(PRESENTER, Role.PRESENTER, GameSettings())
    return store, manager, table


async def _start(manager, table):
    await manager.join_room(PLACER, "room1")
    await table.promote_if_ready("room1")


class TestRaces:
    async def test_two_joiners_race_for_last_seat(self, yielding):
        store, manager, _table = yielding
        store.attempts = 0
        results = await asyncio.gather(
            manager.join_room(PLACER, "room1"),
            manager.join_room(OUTSIDER, "room1"),
            return_exceptions=True,
        )

        seated = [r for r in results if not isinstance(r, BaseException)]
        failed = [r for r in results if isinstance(r, BaseException)]
        assert len(seated) == 1
        assert len(failed) == 1
        assert isinstance(failed[0], RoomFullError)
        assert store.attempts == 3  # both load, the loser reloads once

        room = await manager.get_room("room1")
        assert room.placer == seated[0][0].placer
        assert room.presenter == PRESENTER

    async def test_double_offer_commits_once(self, yielding):
        _store, manager, table = yielding
        await _start(manager, table)
        results = await asyncio.gather(
            table.offer_basket(PRESENTER, "room1", 0),
            table.offer_basket(PRESENTER, "room1", 2),
            return_exceptions=True,
        )

        assert sum(isinstance(r, AlreadyOfferedError) for r in results) == 1
        room = await manager.get_room("room1")
        assert room.state.phase == GamePhase.PLACING
        assert room.state.current_offered in (0, 2)

    async def test_double_place_commits_once(self, yielding):
        _store, manager, table = yielding
        await _start(manager, table)
        await table.offer_basket(PRESENTER, "room1", 1)
        results = await asyncio.gather(
            table.place_coin(PLACER, "room1", 3),
            table.place_coin(PLACER, "room1", 4),
            return_exceptions=True,
        )

        assert sum(isinstance(r, NoBasketOfferedError) for r in results) == 1
        room = await manager.get_room("room1")
        assert room.state.turn == 1
        assert len(room.state.moves) == 1
        assert room.state.sums[1] in (3, 4)
        assert len(room.state.remaining) == 4

    async def test_same_coin_placed_once(self, yielding):
        _store, manager, table = yielding
        await _start(manager, table)
        await table.offer_basket(PRESENTER, "room1", 1)
        results = await asyncio.gather(
            table.place_coin(PLACER, "room1", 3),
            table.place_coin(PLACER, "room1", 3),
            return_exceptions=True,
        )

        placed = [r for r in results if isinstance(r, Room)]
        rejected = [r for r in results if isinstance(r, NoBasketOfferedError)]
        assert len(placed) == 1
        assert len(rejected) == 1
        assert rejected[0].code == ErrorCode.NO_BASKET_OFFERED

        room = await manager.get_room("room1")
        assert room.state.remaining == (1, 2, 4, 5)
        assert room.state.sums == (0, 3, 0)
        assert [move.coin for move in room.state.moves] == [3]

    async def test_same_coin_after_reoffer_is_unavailable(self):
        store = ReofferingRecordStore()
        manager, table = build(store)
        await manager.create_room(PRESENTER, Role.PRESENTER, GameSettings())
        await _start(manager, table)
        await table.offer_basket(PRESENTER, "room1", 1)

        async def place_then_reoffer():
            await table.place_coin(PLACER, "room1", 3)
            await table.offer_basket(PRESENTER, "room1", 2)

        store.before_commit = place_then_reoffer
        with pytest.raises(CoinUnavailableError):
            await table.place_coin(PLACER, "room1", 3)

        room = await manager.get_room("room1")
        assert room.state.phase == GamePhase.PLACING
        assert room.state.current_offered == 2
        assert room.state.remaining == (1, 2, 4, 5)
        assert room.state.sums == (0, 3, 0)
        assert len(room.state.moves) == 1

    async def test_racing_leaves_both_apply(self, yielding):
        _store, manager, table = yielding
        await _start(manager, table)
        await asyncio.gather(
            manager.leave_room(PLACER, "room1"),
            manager.leave_room(PRESENTER, "room1"),
        )
        room = await manager.get_room("room1")
        assert room.presenter is None
        assert room.placer is None


class TestRetriesExhausted:
    async def test_conflict_reported_to_intent(self):
        store = InterferingRecordStore(max_retries=3)
        manager, table = build(store)
        await manager.create_room(PRESENTER, Role.PRESENTER, GameSettings())

        result = await run_intent("leave_room", lambda: manager.leave_room(PRESENTER, "room1"), PRESENTER)

        assert not result.ok
        assert result.error == ErrorCode.CONFLICT
        assert "3 consecutive races" in result.message
