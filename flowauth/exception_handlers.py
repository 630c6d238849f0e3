"""Centralized error translation for the FastAPI application.

Every failure leaves the service in the same shape:

    {"success": false, "code": "...", "message": "...", "errors": {...}}

``translate_exception`` is the single place that turns an exception into
that shape. Internal exception text is only exposed in development.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from flowauth.config import get_settings
from flowauth.errors import (
    AppError,
    ErrorCode,
    MethodNotAllowedError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UnauthorizedError,
    ValidationFailedError,
)
from flowauth.schemas.common import ErrorResponse

logger = logging.getLogger("flowauth")

_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


def validation_field_errors(errors: list[dict[str, Any]]) -> dict[str, str]:
    """Collapse pydantic error entries into one message per client-facing field."""
    fields: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _REQUEST_PARTS:
            loc = loc[1:]
        field = ".".join(loc) or "body"
        if field in fields:
            continue

        error_type = error.get("type", "")
        if error_type == "missing":
            message = f"{field} is required"
        elif error_type == "value_error" and "error" in error.get("ctx", {}):
            message = str(error["ctx"]["error"])
        else:
            message = error.get("msg", "Invalid value")
        fields[field] = message
    return fields


def _from_http_exception(exc: StarletteHTTPException) -> AppError:
    if exc.status_code == 404:
        return NotFoundError("Unknown endpoint", {"path": "The requested resource does not exist"})
    if exc.status_code == 405:
        return MethodNotAllowedError()
    if exc.status_code == 401:
        return UnauthorizedError(str(exc.detail))
    if exc.status_code == 429:
        return RateLimitedError()
    if exc.status_code >= 500:
        return ServerError()
    # Any other client error is a 400 VALIDATION_FAILED
    return ValidationFailedError(str(exc.detail))


def translate_exception(exc: Exception, include_detail: bool = False) -> tuple[int, dict[str, Any]]:
    """Map any exception to (status_code, response body)."""
    if isinstance(exc, AppError):
        error = exc
    elif isinstance(exc, RequestValidationError):
        error = ValidationFailedError(errors=validation_field_errors(list(exc.errors())))
    elif isinstance(exc, RateLimitExceeded):
        error = RateLimitedError()
    elif isinstance(exc, StarletteHTTPException):
        error = _from_http_exception(exc)
    else:
        error = ServerError(errors={"server": f"{type(exc).__name__}: {exc}"} if include_detail else None)

    body = ErrorResponse(code=error.code.value, message=error.message, errors=error.errors or None)
    return error.status_code, body.model_dump(exclude_none=True)


def _respond(request: Request, exc: Exception) -> JSONResponse:
    status_code, body = translate_exception(exc, include_detail=get_settings().is_development)
    if body["code"] == ErrorCode.SERVER_ERROR.value:
        logger.error("Server error on %s %s: %s", request.method, request.url.path, type(exc).__name__)
    else:
        logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, body["code"])
    headers = exc.headers if isinstance(exc, StarletteHTTPException) else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the translator for every exception family the app can raise."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _respond(request, exc)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return _respond(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _respond(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _respond(request, exc)
