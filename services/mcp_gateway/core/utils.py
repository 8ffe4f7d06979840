"""
Gateway Utility Module
"""

import json
import logging
from urllib.parse import urlsplit

import httpx

from ..models.envelope import ApiResponse

logger = logging.getLogger("gateway.utils")


def build_api_url(api_url: str, base_path: str = "", api_version: str = "") -> str:
    """
    Join host, base path and version segment with exactly one slash between parts.

    Examples:
        build_api_url("https://h/", "api/", "/v1/") -> "https://h/api/v1"
        build_api_url("https://h", "/", "")         -> "https://h"
    """
    base_url = api_url.strip().rstrip("/")
    segments = [
        part
        for part in (base_path.strip().strip("/"), (api_version or "").strip().strip("/"))
        if part
    ]
    if not segments:
        return base_url
    return "/".join([base_url, *segments])


def normalize_path(path: str) -> str:
    """Relative request path with a single leading slash."""
    return "/" + path.strip().lstrip("/")


def is_absolute_url(path: str) -> bool:
    """True for "scheme://host/..." targets; everything else is relative to the API base."""
    parts = urlsplit(path.strip())
    return bool(parts.scheme and parts.netloc)


def parse_upstream_response(response: httpx.Response) -> ApiResponse:
    """
    Convert a raw upstream response into an ApiResponse.

    Returns:
        - the body verbatim when it already is an envelope (has a boolean "success"),
        - {"success": true, "data": body} for any other JSON (data omitted for an empty 2xx body),
        - {"success": false, ...} for non-2xx statuses and non-JSON bodies.
    """
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
        body_is_json = False
    else:
        body_is_json = True

    if response.is_error:
        message = f"Upstream returned HTTP {response.status_code}"
        if isinstance(payload, dict) and payload.get("error"):
            message = f"{message}: {payload['error']}"
        return ApiResponse.fail(message, status_code=response.status_code)

    if not response.content.strip():
        # 204 No Content and friends
        return ApiResponse.ok(None)

    if not body_is_json:
        logger.warning(
            "Upstream returned a non-JSON body",
            extra={
                "status_code": response.status_code,
                "snippet": response.text[:200] if response.content else "",
            },
        )
        return ApiResponse.fail(
            "Upstream returned a non-JSON response", status_code=response.status_code
        )

    if isinstance(payload, dict) and isinstance(payload.get("success"), bool):
        return ApiResponse.model_validate(payload)

    return ApiResponse.ok(payload)

