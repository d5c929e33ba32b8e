"""Server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.store.base import DEFAULT_MAX_RETRIES
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ChestsServerSettings(BaseSettings):
    model_config = {"env_prefix": "CHESTS_"}

    log_dir: str | None = None
    cors_origins: list[str] = ["http://localhost:8710"]
    store_backend: Literal["memory", "sqlite"] = "memory"
    database_path: str = Field(default="backend/data/chests.db", min_length=1)
    session_ttl_seconds: int = Field(default=86400, ge=60)
    transaction_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
