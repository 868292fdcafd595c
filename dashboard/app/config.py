"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Remote API
    api_base_url: str = "http://localhost:3000"
    request_timeout_seconds: float = 30.0

    # Credential persistence
    credential_store_path: str = "~/.config/docdash/session.json"

    # Transient error retries (attempts after the first)
    read_retry_count: int = 3
    mutation_retry_count: int = 2

    # Retry jitter (milliseconds)
    retry_jitter_min_ms: int = 200
    retry_jitter_max_ms: int = 500

    # Background document list refresh
    document_poll_interval_seconds: float = 30.0
    recent_document_window_seconds: float = 5 * 60

    # Upload limits (bytes)
    max_upload_bytes: int = 10 * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
