# app/core/exception_handlers.py
from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

Installed by `app.main.create_app`. All HTTP errors are rendered as
application/problem+json with a stable schema; `AppException` subclasses
additionally surface their typed `code` and machine-readable `details`.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException
from app.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)


def _problem(
    title: str,
    detail: str,
    status_code: int,
    request: Request,
    *,
    extra: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": str(request.url),
    }
    rid = get_request_id(request)
    if rid:
        content["request_id"] = rid
    if extra:
        content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        media_type="application/problem+json",
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    problem = exc.to_problem(fallback_request_id=get_request_id(request) or None)
    extra: Dict[str, Any] = {"code": problem["code"]}
    if "details" in problem:
        extra["details"] = problem["details"]
    return _problem(title, exc.message, exc.status_code, request, extra=extra, headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    if isinstance(exc, AppException):
        return await app_exception_handler(request, exc)
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem(title, detail, exc.status_code, request, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    detail = "Validation error"
    return _problem(
        detail,
        detail,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        request,
        extra={"errors": exc.errors()},
    )


# Sync: SlowAPIMiddleware falls back to its own handler for coroutine handlers.
def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:  # type: ignore
    logger.info("Rate limit exceeded for %s", request.url.path)
    return _problem(
        "Too Many Requests",
        f"Rate limit exceeded: {exc.detail}",
        status.HTTP_429_TOO_MANY_REQUESTS,
        request,
        headers={"Retry-After": "60"},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals; the stack trace goes to the log only.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _problem("Internal Server Error", "An unexpected error occurred.", status.HTTP_500_INTERNAL_SERVER_ERROR, request)


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "rate_limit_exception_handler",
    "global_exception_handler",
]
