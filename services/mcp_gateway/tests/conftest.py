from unittest.mock import AsyncMock

import httpx
import pytest

from services.common.core.request_context import clear_request_id
from services.mcp_gateway.client import UpstreamClient
from services.mcp_gateway.config import GatewayConfig
from services.mcp_gateway.models.envelope import ApiResponse

API_URL = "https://api.test"
BASE_URL = "https://api.test/api/v1"


@pytest.fixture(autouse=True)
def _clear_request_context():
    clear_request_id()
    yield
    clear_request_id()


@pytest.fixture
def gateway_config(tmp_path):
    return GatewayConfig(
        API_URL=API_URL,
        API_KEY="test-key",
        KNOWLEDGE_BASE_PATH=str(tmp_path / "knowledge_base.json"),
        UPDATE_CHECK_INTERVAL=60,
    )


@pytest.fixture
def upstream_client():
    return UpstreamClient(httpx.AsyncClient(), API_URL, api_key="test-key")


@pytest.fixture
def sample_endpoints():
    return [
        {
            "path": "/users",
            "method": "GET",
            "description": "List users with pagination",
            "parameters": [{"name": "page", "in": "query", "type": "number"}],
            "security": True,
            "tags": ["users"],
        },
        {
            "path": "/users",
            "method": "POST",
            "description": "Create a new user",
            "security": True,
            "tags": ["users"],
        },
        {
            "path": "/courses",
            "method": "GET",
            "description": "List published courses",
            "tags": ["courses", "catalog"],
        },
        {
            "path": "/course-enrollments",
            "method": "POST",
            "description": "Enroll user in course",
            "security": True,
            "tags": ["enrollments"],
        },
    ]


@pytest.fixture
def mock_client(sample_endpoints):
    """Stand-in for UpstreamClient whose discovery returns sample_endpoints."""
    client = AsyncMock(spec=UpstreamClient)
    client.get_endpoints.return_value = ApiResponse.ok(sample_endpoints)
    return client
