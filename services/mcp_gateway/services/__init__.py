"""
Services package.

Provides the long-lived gateway components.
"""

from .context_composer import ContextComposer
from .knowledge_base import EndpointKnowledgeBase
from .tool_catalog import ToolCatalog
from .update_checker import UpdateChecker

__all__ = [
    "ContextComposer",
    "EndpointKnowledgeBase",
    "ToolCatalog",
    "UpdateChecker",
]
