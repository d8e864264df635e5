"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Tutorchat"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "tutorchat"

    # Write path
    write_max_retries: int = Field(default=3, ge=1)
    write_lock_timeout_seconds: float = Field(default=5.0, gt=0)

    # Messages
    message_max_length: int = Field(default=5000, ge=1)

    # When true, the course id becomes part of the conversation id so a pair
    # gets one thread per course instead of one thread overall.
    scope_by_course: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
