"""
Tool catalog models.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolError(BaseModel):
    code: str
    message: str
    resolution: str = ""


class ToolDefinition(BaseModel):
    """Describes one gateway capability to an LLM client."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    purpose: str = ""
    route: Optional[str] = None
    method: Optional[str] = None
    use_cases: List[str] = Field(default_factory=list, alias="useCases")
    trigger_conditions: List[str] = Field(default_factory=list, alias="triggerConditions")
    input_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )
    common_errors: List[ToolError] = Field(default_factory=list, alias="commonErrors")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
