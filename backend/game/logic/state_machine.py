"""
Game of Chests state machine.

Phases run waiting -> offering -> placing -> offering ... -> finished.
Each transition takes a Room and returns a new Room, raising a GameRuleError
(and changing nothing) when the move is illegal. Authorization is checked
against the same record the transition is applied to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from game.logic.enums import GamePhase
from game.logic.exceptions import (
    ActiveRoundError,
    AlreadyOfferedError,
    CoinUnavailableError,
    GameFinishedError,
    InvalidBasketError,
    NoBasketOfferedError,
    NotPlacerError,
    NotPresenterError,
    WaitingForPlayersError,
)
from game.logic.settings import NUM_BASKETS
from game.logic.state import ChestsGameState, MoveRecord

if TYPE_CHECKING:
    from game.logic.settings import GameSettings
    from game.logic.state import Room


def initialize_game(settings: GameSettings) -> ChestsGameState:
    """Fresh game: every coin remaining, empty baskets, turn 0, waiting."""
    return ChestsGameState(
        coin_count=settings.coin_count,
        compensation=settings.compensation,
        remaining=tuple(range(1, settings.coin_count + 1)),
    )


def promote_if_ready(room: Room) -> Room:
    """Move waiting -> offering once both roles are filled.

    Idempotent: any other phase, or a missing player, returns the room unchanged.
    """
    if room.state.phase != GamePhase.WAITING or not room.both_roles_filled:
        return room
    return room.model_copy(update={"state": room.state.model_copy(update={"phase": GamePhase.OFFERING})})


def offer_basket(room: Room, basket: int, author: str) -> Room:
    """Presenter reveals basket for the placer to fill."""
    state = room.state
    if room.presenter != author:
        raise NotPresenterError
    if state.current_offered is not None:
        raise AlreadyOfferedError(state.current_offered)
    if state.turn >= state.coin_count or state.phase == GamePhase.FINISHED:
        raise GameFinishedError
    if state.phase == GamePhase.WAITING:
        raise WaitingForPlayersError
    if not 0 <= basket < NUM_BASKETS:
        raise InvalidBasketError(basket)

    new_state = state.model_copy(update={"current_offered": basket, "phase": GamePhase.PLACING})
    return room.model_copy(update={"state": new_state})


def place_coin(room: Room, coin: int, author: str, *, now: float) -> Room:
    """Placer drops coin into the offered basket, ending the turn."""
    state = room.state
    basket = state.current_offered
    if basket is None:
        raise NoBasketOfferedError
    if room.placer != author:
        raise NotPlacerError
    if coin not in state.remaining:
        raise CoinUnavailableError(coin)

    baskets = list(state.baskets)
    baskets[basket] = (*baskets[basket], coin)
    sums = list(state.sums)
    sums[basket] += coin
    turn = state.turn + 1

    new_state = state.model_copy(
        update={
            "baskets": tuple(baskets),
            "sums": tuple(sums),
            "remaining": tuple(c for c in state.remaining if c != coin),
            "moves": (*state.moves, MoveRecord(turn=turn, basket=basket, coin=coin, by=author, ts=now)),
            "turn": turn,
            "current_offered": None,
            "phase": GamePhase.FINISHED if turn >= state.coin_count else GamePhase.OFFERING,
        },
    )
    return room.model_copy(update={"state": new_state})


def ensure_restartable(state: ChestsGameState) -> None:
    """A game may only be replaced between rounds (waiting or finished)."""
    if state.phase.is_active_round:
        raise ActiveRoundError


def restart_game(room: Room, settings: GameSettings) -> Room:
    """Replace the game with a fresh one, promoting it if both roles are filled."""
    ensure_restartable(room.state)
    return promote_if_ready(room.model_copy(update={"state": initialize_game(settings)}))
