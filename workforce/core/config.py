"""
Centralized configuration management.

Follows Layer 5 rules:
- All secrets (DB URLs, JWT keys, Redis credentials) MUST come from
  environment variables or a secure secret store (never hardcoded)
- Centralize configuration in this module
- Do not spread os.getenv calls all over the codebase
- Do not log secrets or environment values
"""
from __future__ import annotations
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Postgres ---
    PG_HOST: str = Field(default="localhost", description="PostgreSQL host")
    PG_PORT: int = Field(default=5432, description="PostgreSQL port")
    PG_DB: str = Field(default="workforce", description="PostgreSQL database name")
    PG_USER: str = Field(default="workforce", description="PostgreSQL user")
    PG_PASSWORD: str = Field(default="", description="PostgreSQL password")
    PG_SSLMODE: str = Field(default="require", description="PostgreSQL SSL mode (require/disable)")
    PG_POOL_MIN: int = Field(default=1, description="Minimum pooled connections")
    PG_POOL_MAX: int = Field(default=10, description="Maximum pooled connections")

    # --- JWT ---
    JWT_SECRET: str = Field(..., description="Access token signing secret")
    JWT_REFRESH_SECRET: str | None = Field(
        default=None,
        description="Refresh token signing secret (falls back to JWT_SECRET)",
    )
    JWT_EXP_MIN: int = Field(default=1440, description="Access token expiration in minutes")

    # --- Redis/Valkey ---
    REDIS_HOST: str = Field(default="redis", description="Redis host")
    REDIS_PORT: int = Field(default=6379, description="Redis port")
    REDIS_DB: int = Field(default=0, description="Redis logical database")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password")
    REDIS_SSL: str = Field(default="false", description="Redis SSL enabled (true/false)")

    # --- Auth / sessions ---
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")
    SESSION_TTL_SEC: int = Field(default=86400, description="Refresh session TTL in seconds")
    USER_CACHE_TTL_SEC: int = Field(default=3600, description="User cache TTL in seconds")
    LOGIN_RATE_LIMIT: int = Field(default=10, description="Login attempts allowed per window")
    LOGIN_RATE_WINDOW_SEC: int = Field(default=60, description="Login rate limit window in seconds")

    # --- CORS ---
    CORS_ORIGINS: str = Field(default="*", description="CORS allowed origins (comma-separated)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def redis_ssl(self) -> bool:
        return self.REDIS_SSL.lower() in ("1", "true", "yes")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once at startup."""
    return Settings()
