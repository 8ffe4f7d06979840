"""
Dependency Injection for Gateway API.

Manage request handler dependencies using FastAPI Depends.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..client import UpstreamClient
from ..config import GatewayConfig
from ..services.context_composer import ContextComposer
from ..services.knowledge_base import EndpointKnowledgeBase
from ..services.tool_catalog import ToolCatalog
from ..services.update_checker import UpdateChecker

# ==========================================
# Service Accessors
# ==========================================


def get_gateway_config(request: Request) -> GatewayConfig:
    return request.app.state.config


def get_upstream_client(request: Request) -> UpstreamClient:
    return request.app.state.upstream_client


def get_update_checker(request: Request) -> UpdateChecker:
    return request.app.state.update_checker


def get_knowledge_base(request: Request) -> EndpointKnowledgeBase:
    return request.app.state.knowledge_base


def get_context_composer(request: Request) -> ContextComposer:
    return request.app.state.context_composer


def get_tool_catalog(request: Request) -> ToolCatalog:
    return request.app.state.tool_catalog


# Service Dependency Type Aliases
GatewayConfigDep = Annotated[GatewayConfig, Depends(get_gateway_config)]
UpstreamClientDep = Annotated[UpstreamClient, Depends(get_upstream_client)]
UpdateCheckerDep = Annotated[UpdateChecker, Depends(get_update_checker)]
KnowledgeBaseDep = Annotated[EndpointKnowledgeBase, Depends(get_knowledge_base)]
ContextComposerDep = Annotated[ContextComposer, Depends(get_context_composer)]
ToolCatalogDep = Annotated[ToolCatalog, Depends(get_tool_catalog)]
