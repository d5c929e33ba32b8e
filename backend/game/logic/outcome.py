"""
Outcome of a finished game.

The placer is credited with the highest basket sum; the presenter with the
second-highest plus the compensation. The lowest basket never counts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from game.logic.enums import GamePhase, Role

if TYPE_CHECKING:
    from game.logic.state import ChestsGameState, Room


class GameOutcome(BaseModel):
    """Result of a finished game. winner is None for a draw."""

    model_config = ConfigDict(frozen=True)

    winner: Role | None
    placer_score: int  # highest basket sum
    presenter_score: int  # second-highest sum + compensation
    discarded: int  # lowest basket sum, ignored

    @property
    def is_draw(self) -> bool:
        return self.winner is None


def compute_outcome(state: ChestsGameState) -> GameOutcome | None:
    """Score a finished game; None while the game is still running."""
    if state.phase != GamePhase.FINISHED:
        return None
    highest, second, lowest = sorted(state.sums, reverse=True)
    adjusted = second + state.compensation
    if highest > adjusted:
        winner: Role | None = Role.PLACER
    elif highest == adjusted:
        winner = None
    else:
        winner = Role.PRESENTER
    return GameOutcome(winner=winner, placer_score=highest, presenter_score=adjusted, discarded=lowest)


def guest_role(room: Room) -> Role | None:
    """Role held by the guest: the seated participant who did not create the room.

    When the creator holds neither role, or both slots are filled by
    non-creators, the later join timestamp decides.
    """
    seated = [role for role in Role if room.occupant(role) is not None]
    non_creators = [role for role in seated if room.occupant(role) != room.creator]
    if len(non_creators) == 1:
        return non_creators[0]
    if len(non_creators) == 2:  # noqa: PLR2004
        return max(non_creators, key=lambda role: room.joined_at(role) or 0.0)
    return None


def role_label(room: Room, role: Role) -> str:
    """Display label for a role; the guest's role uses the room's display name when set."""
    if room.display_name and guest_role(room) == role:
        return room.display_name
    return role.value.capitalize()


def describe_outcome(room: Room) -> str | None:
    """Outcome text in the placer's framing, e.g. "Placer wins 7 : 6"."""
    outcome = compute_outcome(room.state)
    if outcome is None:
        return None
    scores = f"{outcome.placer_score} : {outcome.presenter_score}"
    if outcome.is_draw:
        return f"Draw {scores}"
    placer = role_label(room, Role.PLACER)
    verdict = "wins" if outcome.winner == Role.PLACER else "loses"
    return f"{placer} {verdict} {scores}"
