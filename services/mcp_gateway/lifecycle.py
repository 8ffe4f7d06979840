"""
Where: services/mcp_gateway/lifecycle.py
What: Builds the gateway components at startup and releases them at shutdown.
Why: Component wiring lives apart from the FastAPI app assembly in main.py.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from services.common.core.http_client import HttpClientFactory

from .client import UpstreamClient
from .config import GatewayConfig
from .services.context_composer import ContextComposer
from .services.knowledge_base import EndpointKnowledgeBase
from .services.tool_catalog import ToolCatalog
from .services.update_checker import UpdateChecker, UpdateHook

logger = logging.getLogger("gateway.main")


@asynccontextmanager
async def manage_lifespan(
    app: FastAPI,
    gateway_config: GatewayConfig,
    update_hook: Optional[UpdateHook] = None,
) -> AsyncIterator[None]:
    """Wire components onto app.state for the lifetime of the app."""
    factory = HttpClientFactory(gateway_config)
    http_client = factory.create_async_client(timeout=gateway_config.REQUEST_TIMEOUT)

    update_checker: Optional[UpdateChecker] = None

    try:
        upstream_client = UpstreamClient.from_config(http_client, gateway_config)
        logger.info(f"Upstream API: {upstream_client.base_url}")

        update_checker = UpdateChecker(
            upstream_client,
            current_version=gateway_config.BUILD_VERSION,
            auto_update=gateway_config.AUTO_UPDATE,
            interval_minutes=gateway_config.UPDATE_CHECK_INTERVAL,
            update_hook=update_hook,
        )

        knowledge_base = EndpointKnowledgeBase(
            upstream_client,
            cache_path=gateway_config.KNOWLEDGE_BASE_PATH,
            source_version=gateway_config.API_VERSION,
        )
        context_composer = ContextComposer.from_config(knowledge_base, gateway_config)

        tool_catalog = ToolCatalog(gateway_config.TOOLS_CONFIG_PATH or None)
        tool_catalog.load_tools()

        await knowledge_base.load_knowledge_base()
        if not await knowledge_base.update_endpoints():
            logger.warning(
                f"Initial endpoint discovery failed; serving "
                f"{knowledge_base.get_endpoint_count()} cached endpoints"
            )

        app.state.http_client = http_client
        app.state.upstream_client = upstream_client
        app.state.update_checker = update_checker
        app.state.knowledge_base = knowledge_base
        app.state.context_composer = context_composer
        app.state.tool_catalog = tool_catalog

        await update_checker.start_update_checker()

        if await upstream_client.test_connection():
            logger.info("Upstream API is reachable")
        else:
            logger.warning("Upstream API is unreachable; gateway starts in degraded mode")

        logger.info(f"Gateway {gateway_config.BUILD_VERSION} ready")
        yield
    finally:
        if update_checker:
            update_checker.stop_update_checker()

        logger.info("Gateway shutting down")
        await http_client.aclose()
