"""
Room and game state models for the Game of Chests.

All models are frozen; transitions build new instances with model_copy so
the functions handed to RecordStore.transact stay pure.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from game.logic.enums import GamePhase, Role
from game.logic.settings import MAX_DISPLAY_NAME_LENGTH, NUM_BASKETS

Baskets = tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]
Sums = tuple[int, int, int]


class MoveRecord(BaseModel):
    """One placement in the append-only move log."""

    model_config = ConfigDict(frozen=True)

    turn: int  # 1-based: the turn counter after this placement
    basket: int
    coin: int
    by: str  # author identity
    ts: float  # epoch seconds


class ChestsGameState(BaseModel):
    """State of one game: coins left, basket contents and the turn protocol."""

    model_config = ConfigDict(frozen=True)

    coin_count: int
    compensation: int
    remaining: tuple[int, ...]
    baskets: Baskets = ((), (), ())
    sums: Sums = (0, 0, 0)  # cached sum(baskets[i]), updated with every placement
    turn: int = 0
    current_offered: int | None = None  # None: no basket awaiting a coin
    phase: GamePhase = GamePhase.WAITING
    moves: tuple[MoveRecord, ...] = ()

    @property
    def is_finished(self) -> bool:
        return self.phase == GamePhase.FINISHED

    @property
    def used_coins(self) -> tuple[int, ...]:
        return tuple(coin for coin in range(1, self.coin_count + 1) if coin not in self.remaining)

    @model_validator(mode="after")
    def _validate_shape(self) -> Self:
        if len(self.baskets) != NUM_BASKETS or len(self.sums) != NUM_BASKETS:
            raise ValueError(f"expected {NUM_BASKETS} baskets")
        if self.current_offered is not None and not (0 <= self.current_offered < NUM_BASKETS):
            raise ValueError(f"offered basket out of range: {self.current_offered}")
        return self


class Room(BaseModel):
    """The shared record: two role slots and the game they are playing."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    creator: str
    created_at: float
    presenter: str | None = None
    placer: str | None = None
    presenter_joined_at: float | None = None
    placer_joined_at: float | None = None
    display_name: str | None = Field(default=None, max_length=MAX_DISPLAY_NAME_LENGTH)
    state: ChestsGameState

    @model_validator(mode="after")
    def _validate_role_exclusivity(self) -> Self:
        if self.presenter is not None and self.presenter == self.placer:
            raise ValueError("one identity cannot hold both roles")
        return self

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Room:
        return cls.model_validate(record)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def occupant(self, role: Role) -> str | None:
        return self.presenter if role == Role.PRESENTER else self.placer

    def joined_at(self, role: Role) -> float | None:
        return self.presenter_joined_at if role == Role.PRESENTER else self.placer_joined_at

    def role_of(self, identity: str | None) -> Role | None:
        if identity is None:
            return None
        if self.presenter == identity:
            return Role.PRESENTER
        if self.placer == identity:
            return Role.PLACER
        return None

    @property
    def both_roles_filled(self) -> bool:
        return self.presenter is not None and self.placer is not None

    def with_occupant(self, role: Role, identity: str | None, joined_at: float | None) -> Room:
        """Return a copy with one role slot (and its join timestamp) replaced."""
        if role == Role.PRESENTER:
            return self.model_copy(update={"presenter": identity, "presenter_joined_at": joined_at})
        return self.model_copy(update={"placer": identity, "placer_joined_at": joined_at})
