"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Account service
    auth_server_url: str = "http://127.0.0.1:9000/v1"
    request_timeout_seconds: float = 10.0

    # Verification link formats (hex string lengths)
    uid_length: int = 32
    code_length: int = 32
    unblock_code_length: int = 8

    # Broker
    broker_capabilities: list[str] = []  # JSON list in the environment

    # Navigation
    default_landing_screen: str = "settings"

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
