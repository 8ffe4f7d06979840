"""
Gateway routing table.

Client input errors are answered here with 400 before any component is called.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, get_args

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, PlainTextResponse

from ..core.exceptions import error_body
from ..core.utils import is_absolute_url
from ..models.context import ContextRequest
from ..models.endpoint import HttpMethod
from ..models.proxy import ProxyRequest
from .deps import (
    ContextComposerDep,
    GatewayConfigDep,
    KnowledgeBaseDep,
    ToolCatalogDep,
    UpdateCheckerDep,
    UpstreamClientDep,
)

SERVICE_NAME = "MCP Gateway"

ROUTES = [
    {"path": "/health", "methods": ["GET"], "description": "Upstream liveness and gateway status"},
    {"path": "/version", "methods": ["GET"], "description": "Gateway and upstream API versions"},
    {"path": "/integrations", "methods": ["GET"], "description": "Upstream integrations"},
    {"path": "/check-update", "methods": ["GET", "POST"], "description": "Check for updates"},
    {"path": "/endpoints", "methods": ["GET"], "description": "List or search endpoints"},
    {"path": "/endpoints/refresh", "methods": ["POST"], "description": "Re-discover endpoints"},
    {"path": "/context", "methods": ["POST"], "description": "Rank endpoints for a query"},
    {"path": "/proxy", "methods": ["POST"], "description": "Forward a request upstream"},
    {"path": "/tools", "methods": ["GET"], "description": "List or search tools"},
    {"path": "/tools/guide", "methods": ["GET"], "description": "Tool usage guide"},
    {"path": "/tools/{name}", "methods": ["GET"], "description": "Single tool descriptor"},
]

PROXY_METHODS = set(get_args(HttpMethod))

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _bad_request(message: str, code: Optional[str] = None) -> JSONResponse:
    extra = {"code": code} if code else {}
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message, **extra)
    )


# ===========================================
# Status
# ===========================================


@router.get("/")
async def service_descriptor(gateway_config: GatewayConfigDep):
    """Static service descriptor."""
    return {
        "success": True,
        "name": SERVICE_NAME,
        "version": gateway_config.BUILD_VERSION,
        "routes": ROUTES,
        "features": {
            "autoUpdate": gateway_config.AUTO_UPDATE,
            "modelContext": gateway_config.MODEL_CONTEXT_ENABLED,
            "contextCache": gateway_config.CACHE_ENABLED,
            "allowedModels": gateway_config.allowed_models or ["*"],
            "maxTokens": gateway_config.MAX_TOKENS,
            "contextWindow": gateway_config.CONTEXT_WINDOW,
        },
    }


@router.get("/health")
async def health_check(
    gateway_config: GatewayConfigDep,
    client: UpstreamClientDep,
    knowledge_base: KnowledgeBaseDep,
):
    """Upstream liveness; 503 when the upstream API is unreachable."""
    healthy = await client.test_connection()
    body: Dict[str, Any] = {
        "success": healthy,
        "status": "healthy" if healthy else "unhealthy",
        "version": gateway_config.BUILD_VERSION,
        "endpointsCount": knowledge_base.get_endpoint_count(),
        "apiConfig": {
            "basePath": gateway_config.API_BASE_PATH,
            "apiVersion": gateway_config.API_VERSION,
        },
        "timestamp": _now(),
    }
    if not healthy:
        body["error"] = "Upstream API is unreachable"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )


@router.get("/version")
async def version_info(gateway_config: GatewayConfigDep, client: UpstreamClientDep):
    upstream = await client.get_version()
    body: Dict[str, Any] = {
        "success": True,
        "version": gateway_config.BUILD_VERSION,
        "apiVersion": gateway_config.API_VERSION,
    }
    if upstream.success:
        info = upstream.data if isinstance(upstream.data, dict) else upstream.to_dict()
        reported = info.get("apiVersion") or info.get("version")
        if reported:
            body["apiVersion"] = str(reported)
        body["upstream"] = info
    else:
        body["upstreamError"] = upstream.error
    return body


@router.get("/integrations")
async def list_integrations(client: UpstreamClientDep, type: Optional[str] = None):
    result = await client.get_integrations(type)
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY,
        content=result.to_dict(),
    )


@router.api_route("/check-update", methods=["GET", "POST"])
async def check_update(update_checker: UpdateCheckerDep):
    result = await update_checker.check_for_updates()
    body: Dict[str, Any] = {
        "success": result.error is None,
        "hasUpdate": result.has_update,
        "currentVersion": result.current_version,
        "latestVersion": result.latest_version,
        "checkedAt": result.checked_at.isoformat(),
    }
    if result.descriptor is not None:
        body["updateInfo"] = {
            "downloadUrl": result.descriptor.download_url,
            "releaseNotes": result.descriptor.release_notes,
        }
    if result.skipped:
        body["skipped"] = True
    if result.error:
        body["error"] = result.error
    return body


# ===========================================
# Endpoint knowledge base
# ===========================================


@router.get("/endpoints")
async def list_endpoints(knowledge_base: KnowledgeBaseDep, query: Optional[str] = None):
    snapshot = knowledge_base.snapshot
    endpoints = knowledge_base.search_endpoints(query)
    body: Dict[str, Any] = {
        "success": True,
        "endpoints": [endpoint.to_dict() for endpoint in endpoints],
        "totalEndpoints": len(endpoints),
        "lastUpdated": snapshot.last_updated.isoformat() if snapshot.last_updated else None,
    }
    if query:
        body["query"] = query
    return body


@router.post("/endpoints/refresh")
async def refresh_endpoints(knowledge_base: KnowledgeBaseDep):
    refreshed = await knowledge_base.update_endpoints()
    count = knowledge_base.get_endpoint_count()
    if not refreshed:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=error_body("Failed to refresh endpoints", endpointsCount=count),
        )
    return {"success": True, "message": "Endpoints refreshed", "endpointsCount": count}


# ===========================================
# Context and proxy
# ===========================================


@router.post("/context")
async def model_context(body: ContextRequest, composer: ContextComposerDep):
    if not (body.query or "").strip():
        return _bad_request("Query is required", code="INVALID_QUERY")

    response = composer.compose(body)
    return JSONResponse(
        status_code=status.HTTP_200_OK if response.success else status.HTTP_400_BAD_REQUEST,
        content=response.to_dict(),
    )


@router.post("/proxy")
async def proxy_request(body: ProxyRequest, client: UpstreamClientDep):
    if not body.method or not body.method.strip():
        return _bad_request("Method is required")
    if not body.path or not body.path.strip():
        return _bad_request("Path is required")
    if is_absolute_url(body.path):
        return _bad_request("Path must be relative to the upstream API")

    method = body.method.strip().upper()
    if method not in PROXY_METHODS:
        return _bad_request(f"Unsupported method: {body.method}")

    result = await client.request(
        method,
        body.path,
        data=body.data,
        params=body.params,
        headers=body.headers,
    )
    return result.to_dict()


# ===========================================
# Tool catalog
# ===========================================


@router.get("/tools")
async def list_tools(catalog: ToolCatalogDep, query: Optional[str] = None):
    tools = catalog.search_tools(query)
    body: Dict[str, Any] = {
        "success": True,
        "tools": [tool.to_dict() for tool in tools],
        "metadata": catalog.get_metadata(),
    }
    if query:
        body["query"] = query
    return body


@router.get("/tools/guide")
async def tools_guide(catalog: ToolCatalogDep):
    return PlainTextResponse(catalog.generate_guide(), media_type="text/markdown")


@router.get("/tools/{name}")
async def get_tool(name: str, catalog: ToolCatalogDep):
    tool = catalog.get_tool(name)
    if tool is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_body(f"Tool not found: {name}"),
        )
    return {"success": True, "tool": tool.to_dict()}
