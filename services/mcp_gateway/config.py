"""
Gateway configuration definition.

Loads configuration from a YAML file when present, otherwise from environment
variables (with documented defaults), and writes the resolved defaults out on
first run. Uses pydantic-settings for type safety and defaults.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import SettingsConfigDict

from services.common.core.config import BaseAppConfig

from .core.exceptions import ConfigurationError

logger = logging.getLogger("gateway.config")

DEFAULT_CONFIG_PATH = "config.yml"
BUILD_VERSION = "2.0.0"

# Secrets stay in the environment; the first-run file never records them.
UNPERSISTED_FIELDS = {"API_KEY"}


class GatewayConfig(BaseAppConfig):
    """
    Configuration management for the MCP Gateway service.

    Immutable once loaded: a change requires a restart.
    """

    # Server settings
    HOST: str = Field(default="localhost", description="Listen host")
    PORT: int = Field(default=3030, ge=1, le=65535, description="Listen port")
    BUILD_VERSION: str = Field(default=BUILD_VERSION, description="Running gateway build version")

    # Upstream API
    API_URL: str = Field(
        default="https://flow-masters-api.example.com", description="Upstream API host URL"
    )
    API_KEY: str = Field(default="", description="Static upstream credential (Bearer)")
    API_BASE_PATH: str = Field(default="/api", description="Upstream base path")
    API_VERSION: str = Field(default="v1", description="Upstream API version segment")
    CLIENT_ID: str = Field(default="MCP-Gateway", description="X-Client header value")
    REQUEST_TIMEOUT: float = Field(default=10.0, gt=0, description="Upstream timeout (seconds)")

    # Update checker
    AUTO_UPDATE: bool = Field(default=False, description="Apply updates when one is found")
    UPDATE_CHECK_INTERVAL: int = Field(
        default=60, ge=1, description="Update poll interval (minutes)"
    )

    # Knowledge base
    KNOWLEDGE_BASE_PATH: str = Field(
        default="knowledge_base.json", description="Endpoint knowledge base cache file"
    )
    TOOLS_CONFIG_PATH: str = Field(
        default="", description="Tool catalog YAML path (empty: packaged default)"
    )

    # Context composer
    MODEL_CONTEXT_ENABLED: bool = Field(default=True, description="Enable the /context route")
    ALLOWED_MODELS: str = Field(default="*", description="Comma separated model ids, or *")
    MAX_TOKENS: int = Field(default=8192, ge=1, description="Advisory token budget")
    CONTEXT_WINDOW: int = Field(default=4096, ge=1, description="Model context window hint")
    CONTEXT_MAX_RESULTS: int = Field(default=5, ge=1, description="Default ranked result count")
    CONTEXT_MIN_RELEVANCE: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Minimum relevance to be ranked"
    )
    CACHE_ENABLED: bool = Field(default=True, description="Cache context responses")
    CACHE_TTL: int = Field(default=3600, ge=1, description="Context cache TTL (seconds)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("API_URL")
    @classmethod
    def _validate_api_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("API_URL must start with http:// or https://")
        return value

    @property
    def allowed_models(self) -> Optional[List[str]]:
        """Allowed model ids, or None when every model is allowed."""
        models = [m.strip() for m in self.ALLOWED_MODELS.split(",") if m.strip()]
        if not models or "*" in models:
            return None
        return models


def _read_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return data


def _write_default_config(path: str, gateway_config: GatewayConfig) -> None:
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                gateway_config.model_dump(exclude=UNPERSISTED_FIELDS), f, sort_keys=False
            )
    except OSError as e:
        raise ConfigurationError(f"Cannot write default configuration to {path}: {e}") from e
    logger.info("Default configuration written to %s", path)


def load_gateway_config(path: Optional[str] = None) -> GatewayConfig:
    """
    Load the gateway configuration.

    Args:
        path: YAML config file (default: GATEWAY_CONFIG_PATH env or config.yml)

    Returns:
        The immutable GatewayConfig

    Raises:
        ConfigurationError: the file cannot be read/written or values are invalid
    """
    path = path or os.getenv("GATEWAY_CONFIG_PATH", DEFAULT_CONFIG_PATH)

    try:
        if os.path.exists(path):
            gateway_config = GatewayConfig(**_read_config_file(path))
            logger.info("Configuration loaded from %s", path)
            return gateway_config

        gateway_config = GatewayConfig()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid gateway configuration: {e}") from e

    _write_default_config(path, gateway_config)
    return gateway_config
