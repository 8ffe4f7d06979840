"""
Proxy request model.

`data` stays an opaque JSON value: the proxy forwards arbitrary upstream shapes unchanged.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ProxyRequest(BaseModel):
    """Body of POST /proxy. method/path are optional here so the route can answer 400 itself."""

    model_config = ConfigDict(extra="ignore")

    method: Optional[str] = None
    path: Optional[str] = None
    data: Any = None
    params: Optional[Dict[str, Any]] = None
    headers: Optional[Dict[str, str]] = None
