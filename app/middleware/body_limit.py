# app/middleware/body_limit.py
from __future__ import annotations

"""
# ReelReviews — Request body size limit (pure ASGI)

Rejects requests whose declared `Content-Length` exceeds `max_bytes` with
**413** `application/problem+json` before the body is read. Chunked uploads
without a length are counted while streaming and cut off the same way.
"""

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class _BodyTooLarge(HTTPException):
    """Raised from `receive`; route body parsing re-raises HTTP exceptions untouched."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(status_code=413, detail=f"Request body exceeds {max_bytes} bytes")


def _too_large(max_bytes: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "type": "about:blank",
            "title": "Payload Too Large",
            "status": 413,
            "detail": f"Request body exceeds {max_bytes} bytes",
        },
        media_type="application/problem+json",
    )


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        declared = Headers(scope=scope).get("content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                length = 0
            if length > self.max_bytes:
                return await _too_large(self.max_bytes)(scope, receive, send)

        received = 0
        started = False

        async def _receive() -> Message:
            nonlocal received
            message = await receive()
            if message.get("type") == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise _BodyTooLarge(self.max_bytes)
            return message

        async def _send(message: Message) -> None:
            nonlocal started
            if message.get("type") == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, _receive, _send)
        except _BodyTooLarge:
            if started:
                raise
            await _too_large(self.max_bytes)(scope, receive, send)


__all__ = ["BodySizeLimitMiddleware"]
