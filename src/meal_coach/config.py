"""Application configuration."""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_reasoning_effort: str | None = "medium"
    openai_store: bool = False
    openai_max_output_tokens: int | None = None
    image_request_delay_seconds: float = 1.5
    sync_debounce_seconds: float = 1.0
    timezone: str = "UTC"
    default_locale: Literal["fr", "en"] = "en"
    cache_db_path: Path = Path("var/meal_coach.sqlite3")
    shopping_list_mode: Literal["local", "generated"] = "local"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
