"""
Configuration module for the Session Relay service.

This module uses Pydantic Settings to load and validate environment variables
for the relay server bind address, CORS policy, logging and the shared
session timer.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default so the relay starts on a bare machine with no
    configuration at all.
    """

    # =========================================================================
    # Relay Server Configuration
    # =========================================================================

    RELAY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the relay server",
    )

    RELAY_PORT: int = Field(
        default=3003,
        description="Port to bind the relay server (HTTP and WebSocket share it)",
        ge=1,
        le=65535,
    )

    ADVERTISED_IP: Optional[str] = Field(
        None,
        description="Address reported by /ip and stamped on participants "
                    "(auto-detected when empty)",
    )

    # =========================================================================
    # CORS Configuration
    # =========================================================================

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins ('*' for any)",
    )

    # =========================================================================
    # Session Timer
    # =========================================================================

    TICK_INTERVAL_SECONDS: float = Field(
        default=1.0,
        description="Seconds between shared timer ticks",
        gt=0,
    )

    # =========================================================================
    # Logging
    # =========================================================================

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is unknown
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.strip().upper()

        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Example:
        >>> from relay.app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.RELAY_PORT)
    """
    return Settings()
