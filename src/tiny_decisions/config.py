"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    kv_table: str = "kv_store"
    store_path: Path = Path(".tiny_decisions.json")
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    lock_duration_ms: int = 2 * 60 * 1000
    spin_duration_ms: int = 4000
    merge_delay_ms: int = 1500
    countdown_interval_ms: int = 1000
    pairing_base_url: str = "http://localhost:8000/"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        """Return true when both Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
