"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_base_url: str = "http://localhost:8000"
    supabase_url: str
    supabase_service_key: str
    meals_table: str = "meals"
    meal_images_bucket: str = "meal-images"
    health_bridge_url: str | None = None
    default_grams: float = 200
    http_timeout_seconds: float = 15
    max_sessions: int = 256
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
