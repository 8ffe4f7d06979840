"""
Request middleware: X-Request-Id propagation and one access log line per call.
"""

import logging
import time
from typing import Any, Dict

from fastapi import Request, Response

from services.common.core.request_context import clear_request_id, set_request_id

logger = logging.getLogger("gateway.access")

REQUEST_ID_HEADER = "X-Request-Id"


def _access_fields(request: Request, response: Response, started: float) -> Dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "query": str(request.query_params) or None,
        "status": response.status_code,
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "client_ip": request.client.host if request.client else None,
    }


async def request_id_middleware(request: Request, call_next):
    # Inbound ids are reused when sane, otherwise a fresh uuid4 is issued.
    request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
    started = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        fields = _access_fields(request, response, started)
        logger.info(f"{fields['method']} {fields['path']} -> {fields['status']}", extra=fields)
        return response
    finally:
        clear_request_id()
