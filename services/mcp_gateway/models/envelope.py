"""
Response envelope model.

Every upstream call is normalized into this shape before any other component sees it.
"""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ApiResponse(BaseModel):
    """
    Uniform {success, data?, error?} result of an upstream call.

    Extra keys sent by the upstream are kept so the proxy can forward them verbatim.
    """

    model_config = ConfigDict(extra="allow")

    success: bool
    data: Any = None
    error: Optional[str] = None

    @field_validator("error", mode="before")
    @classmethod
    def _stringify_error(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    @classmethod
    def ok(cls, data: Any = None) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, **extra: Any) -> "ApiResponse":
        return cls(success=False, error=error, **extra)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict; unset optional fields are omitted."""
        return self.model_dump(mode="json", exclude_none=True)
