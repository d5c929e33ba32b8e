"""Intent results: every intent returns success or a typed failure, never raises."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import structlog

from game.logic.enums import ErrorCode
from game.logic.exceptions import ChestsError
from shared.store.exceptions import StoreUnavailableError, TransactionConflictError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from game.logic.enums import Role
    from game.logic.state import Room

logger = structlog.get_logger()


class IntentResult(NamedTuple):
    """
    Outcome of one intent.

    On success room is the committed room (None after leaving) and role is
    the caller's role in it. On failure error names the kind and message
    describes it; shared state is untouched.
    """

    ok: bool
    error: ErrorCode | None = None
    message: str = ""
    room: Room | None = None
    role: Role | None = None


def failure(error: ErrorCode, message: str) -> IntentResult:
    return IntentResult(ok=False, error=error, message=message)


async def run_intent(
    intent: str,
    action: Callable[[], Awaitable[Room | None]],
    identity: str | None = None,
) -> IntentResult:
    """Run action and convert domain and store failures into an IntentResult.

    Unexpected exceptions propagate: they are bugs, not game outcomes.
    """
    try:
        room = await action()
    except ChestsError as e:
        logger.info("intent rejected", intent=intent, error=e.code, reason=str(e))
        return failure(e.code, str(e))
    except TransactionConflictError as e:
        logger.warning("intent lost too many races", intent=intent, attempts=e.attempts)
        return failure(ErrorCode.CONFLICT, str(e))
    except StoreUnavailableError as e:
        logger.warning("store unavailable", intent=intent, error=str(e))
        return failure(ErrorCode.STORE_UNAVAILABLE, str(e))
    role = room.role_of(identity) if room is not None else None
    return IntentResult(ok=True, room=room, role=role)
