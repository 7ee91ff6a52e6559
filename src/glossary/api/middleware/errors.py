"""
Error handling — maps exceptions to ``{"error", "message"}`` JSON responses.

- :class:`~glossary.core.errors.GlossaryError` → its carried status
- request validation failures → 400 ``ValidationError``
- routing errors (unknown path, wrong method) → their status
- anything else → 500 ``ServerError`` (the single error boundary)
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from glossary.core.errors import GlossaryError
from glossary.core.logging import get_logger

logger = get_logger(__name__)

GENERIC_SERVER_MESSAGE = "Unexpected error"

_HTTP_ERROR_NAMES: dict[int, str] = {
    400: "ValidationError",
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "Conflict",
    502: "BadGateway",
    503: "ServiceUnavailable",
}


def error_response(status: int, error: str, message: str, **extra: Any) -> JSONResponse:
    """Build the JSON error envelope."""
    return JSONResponse(status_code=status, content={"error": error, "message": message, **extra})


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
    return "; ".join(parts) or "Invalid request"


async def glossary_error_handler(request: Request, exc: GlossaryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("request_upstream_error", path=request.url.path, error=exc.error, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "ValidationError", _describe_validation(exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    name = _HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": name, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — 500 with a generic message unless debugging."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    settings = getattr(request.app.state, "settings", None)
    debug = bool(settings and settings.debug)
    return error_response(500, "ServerError", (str(exc) or GENERIC_SERVER_MESSAGE) if debug else GENERIC_SERVER_MESSAGE)


def install_error_handlers(app: FastAPI) -> None:
    """Register every handler above on ``app``."""
    app.add_exception_handler(GlossaryError, glossary_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
