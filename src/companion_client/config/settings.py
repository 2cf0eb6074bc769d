"""
Configuration settings for Companion Client.

This module provides configuration management using Pydantic settings
with support for environment variables and .env files.
"""

from typing import Optional, Dict, Any
from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompanionSettings(BaseSettings):
    """
    Main configuration settings for Companion Client.

    Settings are loaded from multiple sources in order of preference:
    1. Environment variables (prefixed with COMPANION_)
    2. Configuration files (.env)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend Configuration
    api_base_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL of the companion backend"
    )

    request_timeout: float = Field(
        default=15.0,
        description="Request timeout in seconds, applied to every call",
        gt=0
    )

    expiry_code: int = Field(
        default=101,
        description="Envelope code the backend uses to signal an expired token"
    )

    # Login Configuration
    login_code: Optional[str] = Field(
        default=None,
        description="Static exchange code used by the CLI host"
    )

    # Storage Configuration
    storage_path: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "companion-client" / "storage.json",
        description="File backing the persisted key-value store"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate and normalize the base URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base URL '{v}'. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {', '.join(sorted(valid_levels))}")
        return v_upper

    def ensure_directories(self) -> None:
        """Ensure the storage directory exists."""
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def effective_log_level(self) -> str:
        """Log level after applying debug mode."""
        return "DEBUG" if self.debug else self.log_level

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, excluding sensitive data."""
        data = self.model_dump()
        # Mask sensitive data
        if data.get("login_code"):
            data["login_code"] = "***masked***"
        data["storage_path"] = str(data["storage_path"])
        return data


def get_settings() -> CompanionSettings:
    """Get the current Companion Client settings."""
    return CompanionSettings()
