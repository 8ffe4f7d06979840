"""
Data model definitions package.

Aggregates Pydantic models for use in other modules.
"""

from .context import ContextOptions, ContextRequest, ContextResponse, RankedEndpoint
from .endpoint import EndpointParameter, EndpointRecord, KnowledgeBaseSnapshot
from .envelope import ApiResponse
from .proxy import ProxyRequest
from .tool import ToolDefinition, ToolError
from .version import UpdateCheckResult, VersionDescriptor

__all__ = [
    "ApiResponse",
    "ContextOptions",
    "ContextRequest",
    "ContextResponse",
    "EndpointParameter",
    "EndpointRecord",
    "KnowledgeBaseSnapshot",
    "ProxyRequest",
    "RankedEndpoint",
    "ToolDefinition",
    "ToolError",
    "UpdateCheckResult",
    "VersionDescriptor",
]
