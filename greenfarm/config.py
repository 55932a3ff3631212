"""Application settings loaded from environment variables via pydantic-settings."""

from enum import StrEnum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from greenfarm.models.enums import SoilTypeEnum


class LogFormat(StrEnum):
    json = "json"
    console = "console"


class Settings(BaseSettings):
    """Central configuration: all values sourced from env vars or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Content generation (Gemini) ─────────────────────────────────────────
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "imagen-4.0-generate-001"
    gemini_image_edit_model: str = "gemini-2.5-flash-image"
    gemini_timeout_seconds: float = 60.0

    # ── Retry ───────────────────────────────────────────────────────────────
    retry_max_attempts: int = 3
    retry_initial_delay_seconds: float = 2.0

    # ── Game rules ──────────────────────────────────────────────────────────
    max_rounds: int = 5
    default_soil_type: SoilTypeEnum = SoilTypeEnum.silty
    default_crop_type: str = "القمح"
    discard_stale_background_results: bool = True

    # ── Game registry ───────────────────────────────────────────────────────
    game_idle_ttl_seconds: float = 3600.0
    max_games: int = 1000

    # ── Weather provider ────────────────────────────────────────────────────
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5/weather"
    openweather_timeout_seconds: float = 10.0

    # ── Observability ───────────────────────────────────────────────────────
    log_level: str = "info"
    log_format: LogFormat = LogFormat.json


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance (cached after first call)."""
    return Settings()
