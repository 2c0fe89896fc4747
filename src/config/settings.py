"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Listener
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)
    public_url: str = Field(
        description="Public base URL Twilio reaches this service on (e.g. https://<ngrok>.ngrok-free.app).",
    )

    # OpenAI Realtime
    openai_api_key: str = Field(description="Credential handed to the call relay.")
    openai_realtime_url: str = Field(
        default="wss://api.openai.com/v1/realtime?model=gpt-4o-realtime-preview-2024-12-17",
    )
    openai_realtime_voice: str = Field(default="ash")

    # Tools
    weather_api_url: str = Field(default="https://api.open-meteo.com/v1/forecast")

    @field_validator("public_url", "openai_api_key")
    @classmethod
    def require_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
