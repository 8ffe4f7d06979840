"""
Versioned upstream API client.

The single choke point for upstream calls. Every operation returns an
ApiResponse; transport faults never reach the caller as exceptions.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from services.common.core.request_context import get_request_id

from .core.utils import build_api_url, is_absolute_url, normalize_path, parse_upstream_response
from .models.envelope import ApiResponse

logger = logging.getLogger("gateway.client")

UPDATES_PATH = "/mcp/updates"


class UpstreamClient:
    """
    Client for the upstream REST API, rooted at <API_URL>/<API_BASE_PATH>/<API_VERSION>.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str,
        base_path: str = "/api",
        api_version: str = "v1",
        api_key: str = "",
        client_id: str = "MCP-Gateway",
        timeout: float = 10.0,
    ):
        self.client = client
        self.base_url = build_api_url(api_url, base_path, api_version)
        self.timeout = timeout
        self._default_headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "X-Client": client_id,
        }

    @classmethod
    def from_config(cls, client: httpx.AsyncClient, gateway_config) -> "UpstreamClient":
        return cls(
            client,
            api_url=gateway_config.API_URL,
            base_path=gateway_config.API_BASE_PATH,
            api_version=gateway_config.API_VERSION,
            api_key=gateway_config.API_KEY,
            client_id=gateway_config.CLIENT_ID,
            timeout=gateway_config.REQUEST_TIMEOUT,
        )

    def url_for(self, path: str) -> str:
        """Absolute URL for a path relative to the versioned base; absolute URLs pass through."""
        if is_absolute_url(path):
            return path
        return self.base_url + normalize_path(path)

    def _headers(
        self, extra: Optional[Dict[str, str]] = None, external: bool = False
    ) -> Dict[str, str]:
        headers = dict(self._default_headers)
        if external:
            # The upstream credential never leaves for third-party hosts.
            headers.pop("Authorization")
        request_id = get_request_id()
        if request_id:
            headers["X-Request-Id"] = request_id
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """
        Perform an arbitrary upstream call.

        Args:
            method: HTTP verb
            path: path relative to the versioned base URL (or an absolute URL)
            data: JSON body, sent only when not None
            params: query parameters
            headers: extra headers (override the defaults)

        Returns:
            ApiResponse; failures are folded into {"success": false, "error": ...}
        """
        method = method.upper()
        url = self.url_for(path)
        request_kwargs: Dict[str, Any] = {
            "headers": self._headers(headers, external=is_absolute_url(path)),
            "timeout": self.timeout,
        }
        if data is not None:
            request_kwargs["json"] = data
        if params:
            request_kwargs["params"] = params

        try:
            response = await self.client.request(method, url, **request_kwargs)
        except httpx.TimeoutException as e:
            logger.error(
                f"Upstream request timed out: {method} {url}",
                extra={"method": method, "url": url, "timeout": self.timeout},
            )
            return ApiResponse.fail(f"Request timed out after {self.timeout}s: {e}")
        except httpx.HTTPError as e:
            logger.error(
                f"Upstream request failed: {method} {url}: {e}",
                extra={"method": method, "url": url, "error_type": type(e).__name__},
            )
            return ApiResponse.fail(str(e) or type(e).__name__)
        except httpx.InvalidURL as e:
            logger.error(f"Invalid upstream URL: {url}: {e}")
            return ApiResponse.fail(f"Invalid URL: {e}")
        except (TypeError, ValueError) as e:
            # Raised while building the request: non-ASCII header values, unserializable bodies.
            logger.error(
                f"Cannot build upstream request: {method} {url}: {e}",
                extra={"method": method, "url": url, "error_type": type(e).__name__},
            )
            return ApiResponse.fail(f"Invalid request: {e}")

        envelope = parse_upstream_response(response)
        if not envelope.success:
            logger.warning(
                f"Upstream call unsuccessful: {method} {url}",
                extra={"status_code": response.status_code, "error_detail": envelope.error},
            )
        return envelope

    async def get_version(self) -> ApiResponse:
        """Upstream API version info."""
        return await self.request("GET", "/version")

    async def test_connection(self) -> bool:
        """Liveness probe; any failure counts as down."""
        result = await self.request("GET", "/health")
        if not result.success:
            logger.error(f"Connection test failed: {result.error}")
        return result.success

    async def get_integrations(self, integration_type: Optional[str] = None) -> ApiResponse:
        params = {"type": integration_type} if integration_type else None
        return await self.request("GET", "/integrations", params=params)

    async def send_webhook_data(self, webhook_url: str, data: Any) -> ApiResponse:
        return await self.request("POST", webhook_url, data=data)

    async def check_for_updates(self, current_version: str) -> ApiResponse:
        """Fetch the remote "latest version" descriptor for the running build."""
        return await self.request("GET", UPDATES_PATH, params={"version": current_version})

    async def get_endpoints(self) -> ApiResponse:
        """Upstream endpoint discovery."""
        return await self.request("GET", "/endpoints")

    async def get_knowledge_base(self) -> ApiResponse:
        """Upstream endpoint knowledge base prepared for LLM clients."""
        return await self.request("GET", "/endpoints/knowledge-base")

    async def aclose(self) -> None:
        await self.client.aclose()
