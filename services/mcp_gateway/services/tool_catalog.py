"""
Tool catalog.

Loads tools.yml and provides lookup, search and a markdown usage guide
describing which gateway route serves which task.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..models.tool import ToolDefinition

logger = logging.getLogger("gateway.tools")

DEFAULT_TOOLS_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "resources", "tools.yml"
)


class ToolCatalog:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_TOOLS_PATH
        self._tools: Dict[str, ToolDefinition] = {}
        self._version: Optional[str] = None
        self._loaded_at: Optional[datetime] = None

    def load_tools(self) -> Dict[str, ToolDefinition]:
        """
        Load and cache tools.yml.

        Returns:
            Dict of tool name -> ToolDefinition
        """
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Tools config not found at {self.config_path}")
            self._tools = {}
            return self._tools
        except yaml.YAMLError as e:
            logger.error(f"Error parsing tools config: {e}")
            self._tools = {}
            return self._tools

        if not isinstance(cfg, dict):
            logger.error(f"Tools config {self.config_path} must contain a mapping")
            self._tools = {}
            return self._tools

        tools: Dict[str, ToolDefinition] = {}
        for raw in cfg.get("tools") or []:
            try:
                tool = ToolDefinition.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid tool definition: {e.error_count()} error(s)")
                continue
            tools[tool.name] = tool

        self._tools = tools
        self._version = str(cfg["version"]) if cfg.get("version") is not None else None
        self._loaded_at = datetime.now(timezone.utc)
        logger.info(f"Loaded {len(self._tools)} tools from {self.config_path}")
        return self._tools

    def get_all_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def search_tools(self, query: Optional[str]) -> List[ToolDefinition]:
        """Case-insensitive substring match over name, description, purpose and use cases."""
        needle = (query or "").strip().lower()
        if not needle:
            return self.get_all_tools()
        return [
            tool
            for tool in self._tools.values()
            if needle in tool.name.lower()
            or needle in tool.description.lower()
            or needle in tool.purpose.lower()
            or any(needle in use_case.lower() for use_case in tool.use_cases)
        ]

    def get_metadata(self) -> Dict[str, Any]:
        categories: List[str] = []
        for tool in self._tools.values():
            for use_case in tool.use_cases:
                if use_case not in categories:
                    categories.append(use_case)
        return {
            "totalTools": len(self._tools),
            "categories": categories,
            "version": self._version,
            "lastUpdated": self._loaded_at.isoformat() if self._loaded_at else None,
        }

    def generate_guide(self) -> str:
        """Markdown guide: one section per tool with its route, triggers and known errors."""
        lines = ["# Gateway Tools Guide", ""]
        if not self._tools:
            lines.append("No tools are configured.")
            return "\n".join(lines)

        lines.append(f"{len(self._tools)} tools are available.")
        for tool in self._tools.values():
            lines += ["", f"## {tool.name}", "", tool.description]
            if tool.route:
                lines += ["", f"**Route:** `{tool.method or 'GET'} {tool.route}`"]
            if tool.purpose:
                lines += ["", f"**Purpose:** {tool.purpose}"]
            if tool.trigger_conditions:
                lines += ["", "**Use when:**"]
                lines += [f"- {condition}" for condition in tool.trigger_conditions]
            required = tool.input_schema.get("required") or []
            if required:
                lines += ["", f"**Required input:** {', '.join(required)}"]
            if tool.common_errors:
                lines += ["", "**Common errors:**"]
                lines += [
                    f"- `{error.code}`: {error.message}. {error.resolution}".rstrip()
                    for error in tool.common_errors
                ]
        return "\n".join(lines)
