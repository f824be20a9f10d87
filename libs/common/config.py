from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "UTC"
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:3000"]

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase
    # Placeholder keeps local/test runs from failing when real credentials
    # are not required. Deployments override via env.
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Background queue
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    CHECKIN_SCAN_RATE_LIMIT: str = "120/minute"

    # Check-in admission
    CHECKIN_TIMEOUT_SECONDS: float = 10.0
    CHECKIN_FLASH_DURATION_MS: int = 1000
    CHECKIN_DECREMENT_CREDITS: bool = True
    CHECKIN_NOTIFICATION_BACKEND: Literal["inline", "arq"] = "inline"

    # Engagement scoring
    CLIENT_ENGAGEMENT_SCORING: bool = True
    ENGAGEMENT_CLIENT_TIMEOUT_SECONDS: float = 15.0
    ENGAGEMENT_MAX_CONCURRENCY: int = 10

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
