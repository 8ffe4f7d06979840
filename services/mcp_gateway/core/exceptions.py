"""
Custom exception classes and handlers.

Every handler answers with the gateway's uniform {"success": false, "error": ...} body.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception class for the gateway."""

    pass


class ConfigurationError(GatewayError):
    """Raised when the configuration cannot be loaded or persisted (fatal at startup)."""

    pass


class InvalidVersionError(GatewayError, ValueError):
    """Raised when a version string is not a semantic version."""

    def __init__(self, version: object):
        self.version = version
        super().__init__(f"Invalid semantic version: {version!r}")


def error_body(message: str, **extra) -> dict:
    body = {"success": False, "error": message}
    body.update(extra)
    return body


_STATUS_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Not found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
}


# ===========================================
# Exception Handlers
# ===========================================


async def global_exception_handler(request: Request, exc: Exception):
    # Last resort: the traceback goes to the log, the client only sees the message.
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(str(exc) or "Internal Server Error"),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if message is None or message == "" or message in ("Not Found", "Method Not Allowed"):
        message = _STATUS_MESSAGES.get(exc.status_code, "Request failed")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(message)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON bodies and wrong field types are client errors (400)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request body", detail=str(exc.errors())),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every error response through the envelope body."""
    handlers = (
        (Exception, global_exception_handler),
        (StarletteHTTPException, http_exception_handler),
        (RequestValidationError, validation_exception_handler),
    )
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]
