"""Application settings loaded from the environment."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the creatorspace backend."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "creatorspace"
    app_env: str = "local"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./creatorspace.db"
    database_echo: bool = False

    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    # bcrypt cost factor; hashes below it are upgraded on next login.
    bcrypt_rounds: int = 12

    redis_url: str = "redis://localhost:6379/0"
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60
    # Extra per-window budget for like/follow/watch create and delete calls.
    interaction_rate_limit_requests: int = 30

    cors_origins: list[str] = ["http://localhost:5173"]
    portfolio_section_limit: int = 12


settings = Settings()

__all__ = ["Settings", "settings"]
