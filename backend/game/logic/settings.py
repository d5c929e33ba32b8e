"""Per-game settings chosen when a room is created or restarted."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from game.logic.exceptions import InvalidSettingsError

NUM_BASKETS = 3

MIN_COIN_COUNT = 4
MAX_COIN_COUNT = 10
DEFAULT_COIN_COUNT = 5

MIN_COMPENSATION = 0
MAX_COMPENSATION = 10
DEFAULT_COMPENSATION = 2

MAX_DISPLAY_NAME_LENGTH = 50

DisplayName = Annotated[str, Field(min_length=1, max_length=MAX_DISPLAY_NAME_LENGTH, strict=True)]
_display_name_adapter: TypeAdapter[str | None] = TypeAdapter(DisplayName | None)


class GameSettings(BaseModel):
    """Coin count and compensation; both fixed for the duration of a game."""

    model_config = ConfigDict(frozen=True)

    coin_count: int = Field(default=DEFAULT_COIN_COUNT, ge=MIN_COIN_COUNT, le=MAX_COIN_COUNT, strict=True)
    compensation: int = Field(default=DEFAULT_COMPENSATION, ge=MIN_COMPENSATION, le=MAX_COMPENSATION, strict=True)


def build_game_settings(
    coin_count: int = DEFAULT_COIN_COUNT,
    compensation: int = DEFAULT_COMPENSATION,
) -> GameSettings:
    """Validate raw values into GameSettings, raising InvalidSettingsError when out of range."""
    try:
        return GameSettings(coin_count=coin_count, compensation=compensation)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise InvalidSettingsError(f"invalid game settings: {fields}") from e


def build_display_name(display_name: str | None) -> str | None:
    """Validate the guest label, raising InvalidSettingsError when empty or too long."""
    try:
        return _display_name_adapter.validate_python(display_name)
    except ValidationError as e:
        raise InvalidSettingsError(f"invalid display name: must be 1 to {MAX_DISPLAY_NAME_LENGTH} characters") from e
