"""Enums for the Game of Chests rules and intent results."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """The two seats of a room."""

    PRESENTER = "presenter"  # chooses which basket is offered each turn
    PLACER = "placer"  # places a coin into the offered basket

    @property
    def other(self) -> Role:
        return Role.PLACER if self is Role.PRESENTER else Role.PRESENTER


class GamePhase(StrEnum):
    """Phase of a game: waiting -> offering <-> placing -> finished."""

    WAITING = "waiting"
    OFFERING = "offering"
    PLACING = "placing"
    FINISHED = "finished"

    @property
    def is_active_round(self) -> bool:
        return self in (GamePhase.OFFERING, GamePhase.PLACING)


class ErrorCode(StrEnum):
    """Distinguishable failure kinds returned by every intent."""

    NOT_FOUND = "not_found"
    ROOM_FULL = "room_full"
    NO_ROLE_AVAILABLE = "no_role_available"
    ROLE_TAKEN = "role_taken"
    ACTIVE_ROUND = "active_round"
    CONFLICT = "conflict"
    NOT_PRESENTER = "not_presenter"
    NOT_PLACER = "not_placer"
    NOT_PARTICIPANT = "not_participant"
    ALREADY_OFFERED = "already_offered"
    NO_BASKET_OFFERED = "no_basket_offered"
    WAITING_FOR_PLAYERS = "waiting_for_players"
    GAME_FINISHED = "game_finished"
    COIN_UNAVAILABLE = "coin_unavailable"
    INVALID_BASKET = "invalid_basket"
    INVALID_SETTINGS = "invalid_settings"
    NOT_IN_ROOM = "not_in_room"
    UNAUTHENTICATED = "unauthenticated"
    STORE_UNAVAILABLE = "store_unavailable"
