"""
SDK configuration (pydantic-settings).

Every field can be overridden with an ``SMBSHARE_`` environment variable:

    SMBSHARE_PORT=4450
    SMBSHARE_CONNECT_TIMEOUT=15
    SMBSHARE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShareSettings(BaseSettings):
    """Runtime settings for share clients."""

    model_config = SettingsConfigDict(
        env_prefix="SMBSHARE_",
        extra="ignore",
    )

    # Connection
    port: int = Field(default=445, ge=1, le=65535)
    connect_timeout: float = Field(default=60.0, ge=1.0, le=600.0)
    encrypt: bool | None = None
    require_signing: bool = True

    # Identity
    default_user: str = "guest"

    # Lane
    lane_name_prefix: str = "smb2_queue"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False


_settings: ShareSettings | None = None


def get_settings() -> ShareSettings:
    """Return the process-wide settings, creating them on first use."""
    global _settings
    if _settings is None:
        _settings = ShareSettings()
    return _settings


def configure_settings(**overrides) -> ShareSettings:
    """
    Replace the process-wide settings.

    Example:
        >>> configure_settings(port=4450, log_level="DEBUG")
    """
    global _settings
    _settings = ShareSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the env."""
    global _settings
    _settings = None


__all__ = ["ShareSettings", "get_settings", "configure_settings", "reset_settings"]
