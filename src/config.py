from functools import lru_cache
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Historian query engine (optional; empty string means in-memory stub)
    historian_url: str = ""
    historian_token: str = ""
    historian_query_timeout_seconds: float = 30.0

    # Headers the fronting proxy uses to pass the authenticated caller
    org_id_header: str = "X-Grafana-Org-Id"
    user_id_header: str = "X-Grafana-User-Id"
    login_header: str = "X-Grafana-Login"

    log_level: str = "INFO"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()
