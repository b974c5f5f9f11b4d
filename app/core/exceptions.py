"""
Global exception handlers — every error leaves as the standard envelope
``{"success": false, "message": ..., "error"?: ...}`` and never carries a
stack trace.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVER_ERROR = "Server error"
RATE_LIMITED = "Too many requests from this IP, please try again later."

# Query parameters whose rejection has its own wording
QUERY_MESSAGES = {"order": "Order must be 'asc' or 'desc'"}


def _envelope(status_code: int, message: str, error: str | None = None, headers=None) -> JSONResponse:
    content: dict = {"success": False, "message": message}
    if error:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = f"Not found - {request.url.path}"
    return _envelope(exc.status_code, str(message), headers=getattr(exc, "headers", None))


def _describe(error: dict) -> str:
    loc = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path"))
    return f"{loc}: {error.get('msg')}" if loc else str(error.get("msg"))


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc", ())
    if len(loc) >= 2 and loc[0] == "query":
        message = QUERY_MESSAGES.get(str(loc[1]), f"Invalid {loc[1]} parameter")
    else:
        message = "Validation error"
    return _envelope(400, message, "; ".join(_describe(e) for e in errors))


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _envelope(500, SERVER_ERROR)


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _envelope(500, SERVER_ERROR)


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded: %s", exc.detail)
    return _envelope(429, RATE_LIMITED)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
