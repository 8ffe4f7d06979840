import pytest

from services.mcp_gateway.services.tool_catalog import DEFAULT_TOOLS_PATH, ToolCatalog

EXPECTED_TOOLS = {
    "get_api_health",
    "get_api_endpoints",
    "refresh_api_endpoints",
    "get_model_context",
    "proxy_api_request",
    "get_integrations",
    "check_for_updates",
}


@pytest.fixture
def catalog():
    catalog = ToolCatalog()
    catalog.load_tools()
    return catalog


def test_packaged_catalog_loads(catalog):
    assert catalog.config_path == DEFAULT_TOOLS_PATH
    assert {tool.name for tool in catalog.get_all_tools()} == EXPECTED_TOOLS


def test_every_tool_points_at_a_route(catalog):
    for tool in catalog.get_all_tools():
        assert tool.route and tool.route.startswith("/")
        assert tool.method in ("GET", "POST")


def test_get_tool(catalog):
    tool = catalog.get_tool("proxy_api_request")

    assert tool is not None
    assert tool.route == "/proxy"
    assert tool.input_schema["required"] == ["method", "path"]
    assert catalog.get_tool("missing") is None


def test_tool_serializes_with_camel_case(catalog):
    data = catalog.get_tool("get_model_context").to_dict()

    assert "useCases" in data
    assert "inputSchema" in data
    assert data["commonErrors"][0]["code"] == "INVALID_QUERY"


def test_search_tools(catalog):
    assert [t.name for t in catalog.search_tools("webhook")] == ["get_integrations"]
    assert {t.name for t in catalog.search_tools("ENDPOINT")} >= {
        "get_api_endpoints",
        "refresh_api_endpoints",
    }
    assert catalog.search_tools("") == catalog.get_all_tools()
    assert catalog.search_tools("nothing-matches-this") == []


def test_metadata(catalog):
    metadata = catalog.get_metadata()

    assert metadata["totalTools"] == len(EXPECTED_TOOLS)
    assert metadata["version"] == "2.0.0"
    assert metadata["lastUpdated"] is not None
    assert "Testing API endpoints" in metadata["categories"]
    assert len(metadata["categories"]) == len(set(metadata["categories"]))


def test_generate_guide(catalog):
    guide = catalog.generate_guide()

    assert guide.startswith("# Gateway Tools Guide")
    assert "## get_api_health" in guide
    assert "**Route:** `GET /health`" in guide
    assert "**Required input:** method, path" in guide
    assert "`INVALID_QUERY`" in guide


def test_missing_file_gives_empty_catalog(tmp_path):
    catalog = ToolCatalog(str(tmp_path / "missing.yml"))

    assert catalog.load_tools() == {}
    assert catalog.get_all_tools() == []
    assert catalog.generate_guide().endswith("No tools are configured.")


def test_invalid_yaml_gives_empty_catalog(tmp_path):
    path = tmp_path / "tools.yml"
    path.write_text("tools: [unclosed", encoding="utf-8")
    catalog = ToolCatalog(str(path))

    assert catalog.load_tools() == {}


def test_invalid_entries_are_skipped(tmp_path):
    path = tmp_path / "tools.yml"
    path.write_text(
        "version: 1\n"
        "tools:\n"
        "  - name: ok_tool\n"
        "    description: Works\n"
        "  - name: broken_tool\n",
        encoding="utf-8",
    )
    catalog = ToolCatalog(str(path))
    catalog.load_tools()

    assert [t.name for t in catalog.get_all_tools()] == ["ok_tool"]
    assert catalog.get_metadata()["version"] == "1"
