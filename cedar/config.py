"""
Configuration for Cedar.

Settings are read from environment variables once and cached:

    CEDAR_BACKEND          backend name registered with the provider factory
    CEDAR_BACKEND_URL      base URL of the research backend
    CEDAR_API_KEY          bearer token sent to the backend
    CEDAR_BACKEND_TIMEOUT  transport timeout in seconds
    CEDAR_MAX_RETRIES      retries for transient backend failures
    CEDAR_LOG_LEVEL        log level for the `cedar` logger
    CEDAR_LOG_FILE         optional log file path
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_DEFAULT_BACKEND_URL = "http://localhost:8765/api"
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class CedarConfig(BaseModel):
    """Runtime configuration."""

    backend: str = "http"
    backend_url: str = _DEFAULT_BACKEND_URL
    api_key: Optional[str] = None
    timeout: float = Field(120.0, gt=0)
    max_retries: int = Field(3, ge=0)
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'. Use one of: {sorted(_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls) -> "CedarConfig":
        """Build configuration from CEDAR_* environment variables."""
        values = {
            "backend": os.getenv("CEDAR_BACKEND"),
            "backend_url": os.getenv("CEDAR_BACKEND_URL"),
            "api_key": os.getenv("CEDAR_API_KEY") or None,
            "timeout": os.getenv("CEDAR_BACKEND_TIMEOUT"),
            "max_retries": os.getenv("CEDAR_MAX_RETRIES"),
            "log_level": os.getenv("CEDAR_LOG_LEVEL"),
            "log_file": os.getenv("CEDAR_LOG_FILE") or None,
        }
        return cls(**{key: value for key, value in values.items() if value is not None})


_config: Optional[CedarConfig] = None


def get_config(reload: bool = False) -> CedarConfig:
    """
    Get the process-wide configuration.

    Args:
        reload: Re-read the environment instead of returning the cached value
    """
    global _config
    if _config is None or reload:
        _config = CedarConfig.from_env()
    return _config


def reset_config():
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
