"""Map exceptions to JSON error responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskbreakdown.errors import TaskBreakdownError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = structlog.get_logger()

_VALUE_ERROR_PREFIX = "Value error, "


def describe_validation_error(exc: RequestValidationError) -> str:
    """Summarize the first request validation problem for the caller."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg", "Invalid value")).removeprefix(_VALUE_ERROR_PREFIX)
    if first.get("type") == "value_error":
        return msg
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


async def _handle_service_error(request: Request, exc: TaskBreakdownError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("request failed", path=request.url.path, error_type=type(exc).__name__, error=exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": describe_validation_error(exc)}, status_code=400)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail, "path": request.url.path},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled error", path=request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def install_error_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on *app*."""
    app.add_exception_handler(TaskBreakdownError, _handle_service_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected)
