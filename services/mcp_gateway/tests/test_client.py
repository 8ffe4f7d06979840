import json

import httpx
import pytest
import respx

from services.common.core.request_context import set_request_id
from services.mcp_gateway.client import UpstreamClient

API_URL = "https://api.test"
BASE_URL = "https://api.test/api/v1"


def test_url_for_relative_and_absolute(upstream_client):
    assert upstream_client.base_url == BASE_URL
    assert upstream_client.url_for("users") == f"{BASE_URL}/users"
    assert upstream_client.url_for("/users/1") == f"{BASE_URL}/users/1"
    assert upstream_client.url_for("https://hooks.test/x") == "https://hooks.test/x"


def test_from_config(gateway_config):
    client = UpstreamClient.from_config(httpx.AsyncClient(), gateway_config)

    assert client.base_url == BASE_URL
    assert client.timeout == gateway_config.REQUEST_TIMEOUT


@pytest.mark.asyncio
@respx.mock
async def test_request_sends_default_headers(upstream_client):
    route = respx.get(f"{BASE_URL}/users").mock(
        return_value=httpx.Response(200, json={"success": True, "data": []})
    )
    set_request_id("req-123")

    result = await upstream_client.request("get", "/users", params={"page": 1})

    assert result.success is True
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["X-Client"] == "MCP-Gateway"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["X-Request-Id"] == "req-123"
    assert request.url.params["page"] == "1"


@pytest.mark.asyncio
@respx.mock
async def test_request_extra_headers_override(upstream_client):
    route = respx.post(f"{BASE_URL}/orders").mock(return_value=httpx.Response(201, json={"id": 7}))

    result = await upstream_client.request(
        "POST", "/orders", data={"sku": "A1"}, headers={"X-Client": "custom"}
    )

    assert result.to_dict() == {"success": True, "data": {"id": 7}}
    request = route.calls.last.request
    assert request.headers["X-Client"] == "custom"
    assert json.loads(request.content) == {"sku": "A1"}


@pytest.mark.asyncio
@respx.mock
async def test_request_timeout_becomes_envelope(upstream_client):
    respx.get(f"{BASE_URL}/slow").mock(side_effect=httpx.ReadTimeout("read timed out"))

    result = await upstream_client.request("GET", "/slow")

    assert result.success is False
    assert result.error.startswith("Request timed out after 10.0s")


@pytest.mark.asyncio
@respx.mock
async def test_request_connection_error_becomes_envelope(upstream_client):
    respx.get(f"{BASE_URL}/users").mock(side_effect=httpx.ConnectError("Connection refused"))

    result = await upstream_client.request("GET", "/users")

    assert result.to_dict() == {"success": False, "error": "Connection refused"}


@pytest.mark.asyncio
@respx.mock
async def test_request_error_status_becomes_envelope(upstream_client):
    respx.get(f"{BASE_URL}/users").mock(return_value=httpx.Response(500, json={"error": "boom"}))

    result = await upstream_client.request("GET", "/users")

    assert result.success is False
    assert "500" in result.error
    assert "boom" in result.error


@pytest.mark.asyncio
@respx.mock
async def test_test_connection(upstream_client):
    route = respx.get(f"{BASE_URL}/health")

    route.mock(return_value=httpx.Response(200, json={"status": "ok"}))
    assert await upstream_client.test_connection() is True

    route.mock(return_value=httpx.Response(200, json={"success": False, "error": "degraded"}))
    assert await upstream_client.test_connection() is False

    route.mock(return_value=httpx.Response(503, json={}))
    assert await upstream_client.test_connection() is False

    route.mock(side_effect=httpx.ConnectError("down"))
    assert await upstream_client.test_connection() is False


@pytest.mark.asyncio
@respx.mock
async def test_get_integrations_type_filter(upstream_client):
    route = respx.get(f"{BASE_URL}/integrations").mock(
        return_value=httpx.Response(200, json=[{"type": "webhook"}])
    )

    await upstream_client.get_integrations("webhook")
    assert route.calls.last.request.url.params["type"] == "webhook"

    await upstream_client.get_integrations()
    assert "type" not in route.calls.last.request.url.params


@pytest.mark.asyncio
@respx.mock
async def test_check_for_updates_sends_current_version(upstream_client):
    route = respx.get(f"{BASE_URL}/mcp/updates").mock(
        return_value=httpx.Response(200, json={"latestVersion": "2.1.0"})
    )

    result = await upstream_client.check_for_updates("2.0.0")

    assert result.data == {"latestVersion": "2.1.0"}
    assert route.calls.last.request.url.params["version"] == "2.0.0"


@pytest.mark.asyncio
@respx.mock
async def test_send_webhook_data_to_absolute_url(upstream_client):
    route = respx.post("https://hooks.test/incoming").mock(
        return_value=httpx.Response(200, json={"received": True})
    )

    result = await upstream_client.send_webhook_data("https://hooks.test/incoming", {"a": 1})

    assert result.success is True
    assert json.loads(route.calls.last.request.content) == {"a": 1}
    assert "authorization" not in route.calls.last.request.headers


@pytest.mark.asyncio
@respx.mock
async def test_request_with_non_ascii_header_becomes_envelope(upstream_client):
    route = respx.get(f"{BASE_URL}/users").mock(return_value=httpx.Response(200, json=[]))

    result = await upstream_client.request("GET", "/users", headers={"X-Name": "\u00e9"})

    assert result.success is False
    assert result.error.startswith("Invalid request")
    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_request_with_unserializable_body_becomes_envelope(upstream_client):
    route = respx.post(f"{BASE_URL}/users").mock(return_value=httpx.Response(200, json={}))

    result = await upstream_client.request("POST", "/users", data={"when": object()})

    assert result.success is False
    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_no_content_response_is_success(upstream_client):
    respx.delete(f"{BASE_URL}/users/1").mock(return_value=httpx.Response(204))

    result = await upstream_client.request("DELETE", "/users/1")

    assert result.to_dict() == {"success": True}


@pytest.mark.asyncio
@respx.mock
async def test_discovery_routes(upstream_client):
    respx.get(f"{BASE_URL}/endpoints").mock(return_value=httpx.Response(200, json=[]))
    respx.get(f"{BASE_URL}/endpoints/knowledge-base").mock(
        return_value=httpx.Response(200, json={"endpoints": []})
    )
    respx.get(f"{BASE_URL}/version").mock(return_value=httpx.Response(200, json={"version": "1.4"}))

    assert (await upstream_client.get_endpoints()).data == []
    assert (await upstream_client.get_knowledge_base()).data == {"endpoints": []}
    assert (await upstream_client.get_version()).data == {"version": "1.4"}


@pytest.mark.asyncio
async def test_aclose_closes_http_client():
    http_client = httpx.AsyncClient()
    client = UpstreamClient(http_client, API_URL)

    await client.aclose()

    assert http_client.is_closed
