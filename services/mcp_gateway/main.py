"""
MCP Gateway - HTTP facade between LLM clients and the upstream REST API.

Serves the endpoint knowledge base, context composer, tool catalog, update
checker and a pass-through proxy over a fixed routing table.
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import SERVICE_NAME, router
from .config import GatewayConfig, load_gateway_config
from .core.exceptions import ConfigurationError, register_exception_handlers
from .core.logging_config import setup_logging
from .lifecycle import manage_lifespan
from .middleware import request_id_middleware
from .services.update_checker import UpdateHook

logger = logging.getLogger("gateway.main")


def create_app(gateway_config: GatewayConfig, update_hook: Optional[UpdateHook] = None) -> FastAPI:
    """Assemble the gateway application around an explicit configuration."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with manage_lifespan(app, gateway_config, update_hook=update_hook):
            yield

    app = FastAPI(title=SERVICE_NAME, version=gateway_config.BUILD_VERSION, lifespan=lifespan)
    app.state.config = gateway_config

    app.middleware("http")(request_id_middleware)
    # Outermost: also answers preflight requests.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)
    return app


class GatewayServer(uvicorn.Server):
    """
    uvicorn server that stops the update checker as soon as a termination
    signal arrives, before uvicorn stops accepting connections and drains
    in-flight requests.
    """

    def __init__(self, config: uvicorn.Config, app: FastAPI):
        super().__init__(config)
        self.gateway_app = app

    def handle_exit(self, sig, frame) -> None:
        update_checker = getattr(self.gateway_app.state, "update_checker", None)
        if update_checker is not None:
            update_checker.stop_update_checker()
        super().handle_exit(sig, frame)


def main() -> None:
    setup_logging(os.getenv("LOG_CONFIG_PATH"))

    try:
        gateway_config = load_gateway_config()
    except ConfigurationError as e:
        logger.critical(f"Failed to load configuration: {e}")
        sys.exit(1)

    setup_logging(gateway_config.LOG_CONFIG_PATH, gateway_config.LOG_LEVEL)

    app = create_app(gateway_config)
    server = GatewayServer(
        uvicorn.Config(
            app,
            host=gateway_config.HOST,
            port=gateway_config.PORT,
            log_config=None,
        ),
        app,
    )
    logger.info(f"Starting {SERVICE_NAME} on {gateway_config.HOST}:{gateway_config.PORT}")
    server.run()


if __name__ == "__main__":
    main()
