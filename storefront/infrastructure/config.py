"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://storefront:storefront_dev_password@db:5432/storefront"
    database_echo: bool = False
    # Create tables on startup instead of running migrations (local dev, tests)
    database_create_all: bool = False

    # Cache
    redis_url: str = "redis://redis:6379/0"
    cache_prefix: str = "cache"
    cache_default_ttl: int = 600

    # Events
    event_dispatch_background: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
