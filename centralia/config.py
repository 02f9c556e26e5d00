"""
Configuration management for Centralia.

Loads configuration from environment variables with support for .env files.
Uses Pydantic Settings for validation and type coercion.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransportConfig(BaseSettings):
    """Streaming transport (agent endpoint) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(
        default="http://localhost:54321/functions/v1/central-ia",
        description="Agent streaming endpoint",
    )
    auth_token: str | None = Field(default=None, description="Bearer token for the agent endpoint")
    timeout: float = Field(default=120.0, description="Read timeout for a streaming call (seconds)")
    connect_timeout: float = Field(default=10.0, description="Connect timeout (seconds)")


class SessionStoreConfig(BaseSettings):
    """Session persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "postgres"] = Field(
        default="memory", description="Session store backend"
    )
    postgres_uri: str | None = Field(default=None, description="PostgreSQL URI for sessions")
    max_sessions: int = Field(default=1000, description="Capacity of the in-memory store")
    pool_size: int = Field(default=5, description="PostgreSQL connection pool size")
    echo_sql: bool = Field(default=False, description="Log every SQL statement")

    def is_postgres(self) -> bool:
        return self.backend == "postgres"


class ChatConfig(BaseSettings):
    """Conversation behaviour knobs."""

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    title_max_length: int = Field(default=50, description="Maximum auto-generated title length")
    preview_max_length: int = Field(default=100, description="Last-message preview length")
    default_title: str = Field(default="Nova conversa", description="Title for untitled sessions")
    cancel_message: str = Field(
        default="Operação cancelada. Como posso ajudar?",
        description="Assistant reply appended when data collection is cancelled",
    )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Nested sections read their own prefixed variables (TRANSPORT_*, SESSION_*, CHAT_*).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str | None = Field(default=None, description="Log file path")

    transport: TransportConfig = Field(default_factory=TransportConfig)
    session_store: SessionStoreConfig = Field(default_factory=SessionStoreConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    env_file = os.environ.get("ENV_FILE")
    if env_file:
        return Settings(
            _env_file=env_file,
            transport=TransportConfig(_env_file=env_file),
            session_store=SessionStoreConfig(_env_file=env_file),
            chat=ChatConfig(_env_file=env_file),
        )
    return Settings()


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from a specific .env file.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Settings: Application settings instance
    """
    if env_file:
        os.environ["ENV_FILE"] = str(env_file)
    get_settings.cache_clear()
    return get_settings()
