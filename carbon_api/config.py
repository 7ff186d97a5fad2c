"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Credentials come from environment variables or .env (defaults are for local dev only)
    - get_settings() is cached (lru_cache) — single instance per process
    - is_production is the only switch that hides stack traces and request context
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Runtime
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    public_url: str = "http://localhost:3000"
    api_version: str = "1.0.0"

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    # Authentication — single static credential pair
    basic_auth_user: str = "admin"
    basic_auth_password: str = "password"

    # Request limits
    max_body_bytes: int = 10 * 1024
    max_upload_bytes: int = 5 * 1024 * 1024

    # Rate limiting (limits string syntax, per client IP)
    rate_limit: str = "100/15 minutes"
    rate_limit_enabled: bool = True

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
