from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from game.logic.enums import Role
from game.logic.outcome import compute_outcome, describe_outcome
from game.logic.settings import DEFAULT_COIN_COUNT, DEFAULT_COMPENSATION, DisplayName
from game.logic.state import Room


class CreateRoomRequest(BaseModel):
    """Range checks for coin_count and compensation happen in GameSettings."""

    model_config = ConfigDict(extra="forbid")

    role: Role | None = None
    coin_count: int = Field(default=DEFAULT_COIN_COUNT, strict=True)
    compensation: int = Field(default=DEFAULT_COMPENSATION, strict=True)
    display_name: DisplayName | None = None


class JoinRoomRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Role | None = None


class AssumeRoleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Role
    coin_count: int = Field(default=DEFAULT_COIN_COUNT, strict=True)
    compensation: int = Field(default=DEFAULT_COMPENSATION, strict=True)
    display_name: DisplayName | None = None


class OfferBasketRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    basket: int = Field(strict=True)


class PlaceCoinRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    coin: int = Field(strict=True)


def room_payload(room: Room | None) -> dict[str, Any]:
    """JSON view of a room: the stored record plus its outcome once finished."""
    if room is None:
        return {"room": None, "outcome": None, "outcome_text": None}
    outcome = compute_outcome(room.state)
    return {
        "room": room.to_record(),
        "outcome": None if outcome is None else outcome.model_dump(mode="json"),
        "outcome_text": describe_outcome(room),
    }
