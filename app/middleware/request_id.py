# app/middleware/request_id.py
from __future__ import annotations

"""
# ReelReviews — Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` / `X-Correlation-ID` when it is a
  valid UUIDv4; otherwise generates one.
- Injects the id into `request.state.request_id` and the response header.
- Binds `request_id` into the **loguru** context for the whole request, so
  every log line (including intercepted stdlib logs) carries it.

## Usage
    from app.middleware.request_id import RequestIDMiddleware, get_request_id
    app.add_middleware(RequestIDMiddleware)
"""

import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = "X-Request-ID"
ALIAS_HEADER = "X-Correlation-ID"
MAX_ID_LENGTH = 128


class RequestIDMiddleware:
    """Attach a per-request correlation id."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME, trust_client_ids: bool = True) -> None:
        self.app = app
        self.header_name = header_name
        self.trust_client_ids = trust_client_ids

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = self._choose_request_id(Headers(scope=scope))
        scope.setdefault("state", {})["request_id"] = req_id
        name_bytes = self.header_name.lower().encode("latin-1")

        async def _send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                raw = message.get("headers", [])
                headers = [(k, v) for (k, v) in raw if k.lower() != name_bytes]
                headers.append((self.header_name.encode("latin-1"), req_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, _send_wrapper)

    def _choose_request_id(self, headers: Headers) -> str:
        if self.trust_client_ids:
            incoming = (headers.get(self.header_name) or headers.get(ALIAS_HEADER) or "").strip()
            if 0 < len(incoming) <= MAX_ID_LENGTH:
                try:
                    val = uuid.UUID(incoming)
                except ValueError:
                    val = None
                if val is not None and val.version == 4:
                    return str(val)
        return str(uuid.uuid4())


def get_request_id(request) -> str:
    """Current request id from `request.state`, or "" outside a request."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]
