"""
Settings shared by every service process.
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppConfig(BaseSettings):
    """Process-wide knobs: logging and the outbound HTTP pool."""

    LOG_LEVEL: str = Field(default="INFO", description="Root log level name")
    LOG_CONFIG_PATH: str = Field(
        default="", description="YAML logging config path (empty: packaged default)"
    )

    # Outbound HTTP
    VERIFY_SSL: bool = Field(default=True, description="Verify upstream TLS certificates")
    HTTP_MAX_CONNECTIONS: int = Field(default=100, ge=1, description="Outbound pool size")
    HTTP_MAX_KEEPALIVE: int = Field(default=20, ge=0, description="Idle pooled connections")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level
