"""Runtime settings read from the environment (or ``.env``) over the built-in defaults."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quiz_master.constants.network_constants import DEFAULT_CORS_ORIGIN, DEFAULT_HOST, DEFAULT_PORT
from quiz_master.core.services.attempt_scorer import LevelingPolicy


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_prefix="QUIZ_MASTER_",
        frozen=True,
    )

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536)
    log_level: str = "INFO"
    cors_origin: str = DEFAULT_CORS_ORIGIN
    leveling_policy: LevelingPolicy = LevelingPolicy.INCREMENTAL

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("leveling_policy", mode="before")
    @classmethod
    def _lower_leveling_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
