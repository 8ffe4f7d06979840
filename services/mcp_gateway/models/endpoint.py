"""
Endpoint knowledge base models.

EndpointRecord and KnowledgeBaseSnapshot are frozen: a refresh builds a new
snapshot and publishes it, nothing is edited in place.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
ParameterLocation = Literal["query", "path", "body", "header"]


class EndpointParameter(BaseModel):
    """One parameter of an upstream operation. `location` is serialized as `in`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    location: ParameterLocation = Field(default="query", alias="in")
    required: bool = False
    type: str = "string"
    description: str = ""


class EndpointRecord(BaseModel):
    """One upstream API operation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str = Field(min_length=1)
    method: HttpMethod = "GET"
    description: str = ""
    parameters: Tuple[EndpointParameter, ...] = ()
    security: bool = False
    tags: Tuple[str, ...] = ()

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def key(self) -> Tuple[str, str]:
        """Catalog identity: (path, method)."""
        return (self.path, self.method)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class KnowledgeBaseSnapshot(BaseModel):
    """One immutable, fully-formed version of the endpoint catalog."""

    model_config = ConfigDict(frozen=True)

    endpoints: Tuple[EndpointRecord, ...] = ()
    last_updated: Optional[datetime] = None
    source_version: Optional[str] = None
    generation: int = 0

    def to_cache_dict(self) -> Dict[str, Any]:
        """Persisted cache file layout."""
        return {
            "version": self.source_version,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }
