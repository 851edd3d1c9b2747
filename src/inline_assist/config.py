"""
Configuration management using Pydantic Settings.

This module handles all environment-based configuration for inline-assist,
including logging, the default completion endpoint and HTTP transport limits.
"""

from typing import Any

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    Nothing here is required; every field has a working default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Deployment environment",
        pattern="^(development|staging|production|test)$",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="json",
        description="Logging format",
        pattern="^(json|standard)$",
    )

    # Completion endpoint
    default_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the Open WebUI compatible server used when a caller gives none",
        min_length=1,
    )

    # HTTP transport
    http_timeout: float | None = Field(
        default=None,
        description="Read/write/pool timeout in seconds for endpoint calls (None disables it)",
        gt=0,
    )
    http_connect_timeout: float = Field(
        default=10.0,
        description="Connect timeout in seconds for endpoint calls",
        gt=0,
        le=300,
    )

    # Page content extraction
    page_content_max_length: int = Field(
        default=4000,
        description="Maximum characters of main page content sent as context",
        ge=100,
        le=100000,
    )

    @computed_field
    @property
    def normalized_base_url(self) -> str:
        """Default base URL without a trailing slash."""
        return self.default_base_url.rstrip("/")

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        return {
            "level": self.log_level,
            "format": self.log_format,
        }
