from itertools import count

import pytest

from game.logic.enums import GamePhase
from game.logic.settings import GameSettings
from game.logic.state import ChestsGameState, Room
from game.logic.state_machine import initialize_game
from game.rooms.manager import RoomManager
from game.rooms.reconciler import PhaseReconciler
from game.rooms.repository import RoomRepository
from game.rooms.table import GameTable
from shared.store import InMemoryRecordStore

PRESENTER = "alice"
PLACER = "bob"
OUTSIDER = "carol"


class FakeClock:
    """Deterministic epoch-seconds clock; every reading advances by one second."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


# ============================================================================
# Test State Builder Helpers
# ============================================================================


def create_state(
    *,
    coin_count: int = 5,
    compensation: int = 2,
    phase: GamePhase = GamePhase.OFFERING,
    **overrides,
) -> ChestsGameState:
    """Create a ChestsGameState with sensible defaults for testing."""
    state = initialize_game(GameSettings(coin_count=coin_count, compensation=compensation))
    return state.model_copy(update={"phase": phase, **overrides})


def create_room(
    *,
    presenter: str | None = PRESENTER,
    placer: str | None = PLACER,
    creator: str = PRESENTER,
    state: ChestsGameState | None = None,
    display_name: str | None = None,
    room_id: str = "room1",
) -> Room:
    """Create a Room with both roles filled and an offering game by default."""
    return Room(
        room_id=room_id,
        creator=creator,
        created_at=100.0,
        presenter=presenter,
        placer=placer,
        presenter_joined_at=100.0 if presenter is not None else None,
        placer_joined_at=200.0 if placer is not None else None,
        display_name=display_name,
        state=state if state is not None else create_state(),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def repository(store):
    return RoomRepository(store)


@pytest.fixture
def manager(repository, clock):
    ids = count(1)
    return RoomManager(repository, clock=clock, id_factory=lambda: f"room{next(ids)}")


@pytest.fixture
def table(repository, clock):
    return GameTable(repository, clock=clock)


@pytest.fixture
def reconciler(repository, table):
    reconciler = PhaseReconciler(repository, table)
    yield reconciler
    reconciler.close()


@pytest.fixture
def settings():
    return GameSettings()
