import json
import os
import signal
from unittest.mock import MagicMock, patch

import httpx
import pytest
import respx
import uvicorn
from fastapi.testclient import TestClient

from services.mcp_gateway import main as gateway_main
from services.mcp_gateway.core.exceptions import ConfigurationError
from services.mcp_gateway.main import GatewayServer, create_app

BASE_URL = "https://api.test/api/v1"


def test_lifespan_wires_and_releases_components(gateway_config, sample_endpoints):
    app = create_app(gateway_config)

    with respx.mock(base_url=BASE_URL, assert_all_called=False) as upstream:
        upstream.get("/endpoints").mock(return_value=httpx.Response(200, json=sample_endpoints))
        upstream.get("/health").mock(return_value=httpx.Response(200, json={"status": "ok"}))

        with TestClient(app) as client:
            assert app.state.knowledge_base.get_endpoint_count() == len(sample_endpoints)
            assert app.state.update_checker.is_scheduled is True
            assert len(app.state.tool_catalog.get_all_tools()) > 0
            assert client.get("/health").status_code == 200

    assert app.state.update_checker.is_scheduled is False
    assert app.state.http_client.is_closed
    assert os.path.exists(gateway_config.KNOWLEDGE_BASE_PATH)


def test_startup_with_unreachable_upstream_serves_cache(gateway_config, sample_endpoints):
    with open(gateway_config.KNOWLEDGE_BASE_PATH, "w", encoding="utf-8") as f:
        json.dump({"version": "v1", "lastUpdated": None, "endpoints": sample_endpoints[:2]}, f)
    app = create_app(gateway_config)

    with respx.mock(base_url=BASE_URL, assert_all_called=False) as upstream:
        upstream.route().mock(side_effect=httpx.ConnectError("Connection refused"))

        with TestClient(app) as client:
            assert app.state.knowledge_base.get_endpoint_count() == 2

            health = client.get("/health")
            assert health.status_code == 503
            assert health.json()["endpointsCount"] == 2

            proxied = client.post("/proxy", json={"method": "GET", "path": "/users"})
            assert proxied.status_code == 200
            assert proxied.json() == {"success": False, "error": "Connection refused"}


def test_handle_exit_stops_update_checker_first(gateway_config):
    app = create_app(gateway_config)
    checker = MagicMock()
    app.state.update_checker = checker
    server = GatewayServer(uvicorn.Config(app), app)

    server.handle_exit(signal.SIGTERM, None)

    checker.stop_update_checker.assert_called_once()
    assert server.should_exit is True


def test_handle_exit_before_startup(gateway_config):
    app = create_app(gateway_config)
    server = GatewayServer(uvicorn.Config(app), app)

    server.handle_exit(signal.SIGTERM, None)

    assert server.should_exit is True


def test_main_exits_on_configuration_error():
    with (
        patch.object(gateway_main, "setup_logging"),
        patch.object(
            gateway_main, "load_gateway_config", side_effect=ConfigurationError("bad config")
        ),
        patch.object(gateway_main, "GatewayServer") as server_cls,
    ):
        with pytest.raises(SystemExit) as exc_info:
            gateway_main.main()

    assert exc_info.value.code == 1
    server_cls.assert_not_called()


def test_main_runs_server(gateway_config):
    with (
        patch.object(gateway_main, "setup_logging"),
        patch.object(gateway_main, "load_gateway_config", return_value=gateway_config),
        patch.object(gateway_main, "GatewayServer") as server_cls,
    ):
        gateway_main.main()

    config_arg = server_cls.call_args.args[0]
    assert config_arg.host == gateway_config.HOST
    assert config_arg.port == gateway_config.PORT
    server_cls.return_value.run.assert_called_once()
