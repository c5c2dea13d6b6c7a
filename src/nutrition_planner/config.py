"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    environment: str = _ENVIRONMENT
    search_min_query_length: int = 2
    search_result_limit: int = 30
    catalog_lookup_limit: int = 30
    search_debounce_ms: int = 300
    catalog_cache_ttl_seconds: int = 3600
    save_success_display_seconds: int = 5
    save_error_display_seconds: int = 3
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000
