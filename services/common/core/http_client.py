"""
Outbound httpx client construction.

Every upstream call in a process goes through one pooled AsyncClient built here.
"""

import logging
from typing import Any

import httpx

from .config import BaseAppConfig

logger = logging.getLogger(__name__)


class HttpClientFactory:
    def __init__(self, config: BaseAppConfig):
        self.config = config

    def pool_limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=self.config.HTTP_MAX_CONNECTIONS,
            max_keepalive_connections=self.config.HTTP_MAX_KEEPALIVE,
        )

    def create_async_client(self, timeout: float = 10.0, **overrides: Any) -> httpx.AsyncClient:
        """
        Build the shared AsyncClient.

        Args:
            timeout: Per-request timeout in seconds
            **overrides: httpx.AsyncClient keyword arguments that replace the defaults

        The host's HTTP(S)_PROXY variables are ignored unless trust_env=True is passed.
        """
        options: dict = {
            "timeout": timeout,
            "verify": self.config.VERIFY_SSL,
            "limits": self.pool_limits(),
            "trust_env": False,
        }
        options.update(overrides)

        if not options["verify"]:
            logger.warning("TLS verification is off for upstream calls")
        return httpx.AsyncClient(**options)
