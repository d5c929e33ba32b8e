"""
Role assignment rules for a room.

Pure functions over Room. An identity holds at most one role: every
assignment clears that identity's other slot first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from game.logic.enums import Role
from game.logic.exceptions import NoRoleAvailableError, RoleTakenError, RoomFullError
from game.logic.state import Room
from game.logic.state_machine import ensure_restartable, initialize_game, promote_if_ready, restart_game

if TYPE_CHECKING:
    from game.logic.settings import GameSettings


def assign_role(room: Room, identity: str, role: Role, now: float) -> Room:
    """Seat identity in role, vacating any other role it holds."""
    if room.occupant(role.other) == identity:
        room = room.with_occupant(role.other, None, None)
    return room.with_occupant(role, identity, now)


def new_room(
    room_id: str,
    creator: str,
    role: Role | None,
    settings: GameSettings,
    display_name: str | None,
    now: float,
) -> Room:
    """Build a brand-new room, seating the creator in role when given."""
    room = Room(
        room_id=room_id,
        creator=creator,
        created_at=now,
        display_name=display_name,
        state=initialize_game(settings),
    )
    if role is not None:
        room = assign_role(room, creator, role, now)
    return promote_if_ready(room)


def join(room: Room, identity: str, role_hint: Role | None, now: float) -> tuple[Room, Role]:
    """Seat identity in the room, returning the updated room and its role.

    Idempotent for an identity that already holds a role. Otherwise the hinted
    role is taken when empty, else the first empty slot (presenter first).
    """
    current = room.role_of(identity)
    if current is not None:
        return room, current
    if room.both_roles_filled:
        raise RoomFullError

    if role_hint is not None and room.occupant(role_hint) is None:
        role = role_hint
    else:
        role = next((r for r in Role if room.occupant(r) is None), None)
        if role is None:
            raise NoRoleAvailableError
    return assign_role(room, identity, role, now), role


def leave(room: Room, identity: str) -> Room:
    """Vacate every role identity holds. The game itself is left untouched."""
    for role in Role:
        if room.occupant(role) == identity:
            room = room.with_occupant(role, None, None)
    return room


def assume_role(
    room: Room,
    identity: str,
    role: Role,
    settings: GameSettings,
    display_name: str | None,
    now: float,
) -> Room:
    """Take role and restart the game with settings (the "Play" action).

    Only allowed between rounds. A seated player may take either role; a
    player already seated in the other role is swapped into the vacated one
    rather than evicted. An unseated identity may only take an empty role.
    Only the creator may relabel the guest; other callers' display_name is
    ignored.
    """
    ensure_restartable(room.state)
    current = room.role_of(identity)
    holder = room.occupant(role)

    if current is None:
        if holder is not None:
            raise RoleTakenError(role)
        seated = assign_role(room, identity, role, now)
    elif current == role:
        seated = room
    else:
        seated = room.with_occupant(current, holder, now if holder is not None else None)
        seated = seated.with_occupant(role, identity, now)

    if display_name is not None and identity == room.creator:
        seated = Room.model_validate({**seated.model_dump(), "display_name": display_name})
    return restart_game(seated, settings)
