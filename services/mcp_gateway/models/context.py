"""
Context composer request/response models.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContextSearchOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)


class ContextOptions(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    max_tokens: Optional[int] = Field(default=None, alias="maxTokens", ge=1)
    max_results: Optional[int] = Field(default=None, alias="maxResults", ge=1)
    temperature: Optional[float] = None
    search: Optional[ContextSearchOptions] = None


class ContextRequest(BaseModel):
    """Body of POST /context. `query` is optional here so the route can answer 400 itself."""

    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    model: Optional[str] = None
    options: ContextOptions = Field(default_factory=ContextOptions)


class RankedEndpoint(BaseModel):
    path: str
    method: str
    description: str = ""
    relevance: float = Field(ge=0.0, le=1.0)


class ContextResponse(BaseModel):
    success: bool
    context: str = ""
    endpoints: List[RankedEndpoint] = Field(default_factory=list)
    model: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
