"""Typed domain exceptions for room and game rule violations.

Every violation carries an ErrorCode. Exceptions are raised inside the pure
update functions handed to the store, which aborts the write, and are
converted to IntentResult failures at the intent boundary.
"""

from typing import ClassVar

from game.logic.enums import ErrorCode, Role


class ChestsError(Exception):
    """Base exception for every recoverable room or game failure."""

    code: ClassVar[ErrorCode]


# --- Room / role failures ---


class RoomError(ChestsError):
    """Role assignment or room lookup failed."""


class RoomNotFoundError(RoomError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"room {room_id} not found")


class RoomFullError(RoomError):
    code = ErrorCode.ROOM_FULL

    def __init__(self) -> None:
        super().__init__("room already has two players")


class NoRoleAvailableError(RoomError):
    code = ErrorCode.NO_ROLE_AVAILABLE

    def __init__(self) -> None:
        super().__init__("no role available")


class RoleTakenError(RoomError):
    code = ErrorCode.ROLE_TAKEN

    def __init__(self, role: Role) -> None:
        self.role = role
        super().__init__(f"{role} is held by another player")


class ActiveRoundError(RoomError):
    code = ErrorCode.ACTIVE_ROUND

    def __init__(self) -> None:
        super().__init__("cannot restart while a round is active")


class NotParticipantError(RoomError):
    code = ErrorCode.NOT_PARTICIPANT

    def __init__(self) -> None:
        super().__init__("only a seated player can do this")


class NotInRoomError(RoomError):
    code = ErrorCode.NOT_IN_ROOM

    def __init__(self) -> None:
        super().__init__("not in a room")


class UnauthenticatedError(ChestsError):
    code = ErrorCode.UNAUTHENTICATED

    def __init__(self) -> None:
        super().__init__("not signed in")


class InvalidSettingsError(ChestsError):
    code = ErrorCode.INVALID_SETTINGS


# --- Game rule failures ---


class GameRuleError(ChestsError):
    """A move was rejected by the state machine."""


class NotPresenterError(GameRuleError):
    code = ErrorCode.NOT_PRESENTER

    def __init__(self) -> None:
        super().__init__("not the presenter")


class NotPlacerError(GameRuleError):
    code = ErrorCode.NOT_PLACER

    def __init__(self) -> None:
        super().__init__("not the placer")


class AlreadyOfferedError(GameRuleError):
    code = ErrorCode.ALREADY_OFFERED

    def __init__(self, basket: int) -> None:
        self.basket = basket
        super().__init__(f"basket {basket} is already offered")


class NoBasketOfferedError(GameRuleError):
    code = ErrorCode.NO_BASKET_OFFERED

    def __init__(self) -> None:
        super().__init__("no basket offered")


class WaitingForPlayersError(GameRuleError):
    code = ErrorCode.WAITING_FOR_PLAYERS

    def __init__(self) -> None:
        super().__init__("waiting for both players to join")


class GameFinishedError(GameRuleError):
    code = ErrorCode.GAME_FINISHED

    def __init__(self) -> None:
        super().__init__("game finished")


class CoinUnavailableError(GameRuleError):
    code = ErrorCode.COIN_UNAVAILABLE

    def __init__(self, coin: int) -> None:
        self.coin = coin
        super().__init__(f"coin {coin} is not available")


class InvalidBasketError(GameRuleError):
    code = ErrorCode.INVALID_BASKET

    def __init__(self, basket: int) -> None:
        self.basket = basket
        super().__init__(f"basket index must be 0, 1 or 2, got {basket}")
