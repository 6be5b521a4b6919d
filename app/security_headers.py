# app/security_headers.py
from __future__ import annotations

"""
# ReelReviews — Security Headers & CORS

## What you get
- **Headers**: X-Content-Type-Options, X-Frame-Options, Referrer-Policy on
  every response, and the `Server` header removed.
- **CORS installer**: allow-list from `settings.BACKEND_CORS_ORIGINS`.
- **Cache helper**: `set_sensitive_cache()` for token-issuing routes.

## Quick start
    from app.security_headers import configure_cors, install_security

    app = FastAPI()
    install_security(app)
    configure_cors(app)
"""

from typing import Iterable, List, Optional, Tuple

from fastapi import Response
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import settings

_STATIC_HEADERS: Tuple[Tuple[bytes, bytes], ...] = (
    (b"x-content-type-options", b"nosniff"),
    (b"x-frame-options", b"DENY"),
    (b"referrer-policy", b"strict-origin-when-cross-origin"),
)


# ─────────────────────────────────────────────────────────────
# 🧩 Middleware
# ─────────────────────────────────────────────────────────────
class SecurityHeadersMiddleware:
    """Apply static security headers idempotently and drop `Server`."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                raw: List[Tuple[bytes, bytes]] = [
                    (k, v) for (k, v) in message.get("headers", []) if k.lower() != b"server"
                ]
                present = {k.lower() for k, _ in raw}
                for name, value in _STATIC_HEADERS:
                    if name not in present:
                        raw.append((name, value))
                message["headers"] = raw
            await send(message)

        await self.app(scope, receive, send_wrapper)


def set_sensitive_cache(response: Response) -> None:
    """Mark a response as uncacheable (tokens, credentials)."""
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("Pragma", "no-cache")
    response.headers.setdefault("Expires", "0")


# ─────────────────────────────────────────────────────────────
# 🌐 CORS installer (allow-list, not '*')
# ─────────────────────────────────────────────────────────────
def configure_cors(
    app,
    *,
    origins: Optional[Iterable[str]] = None,
    allow_credentials: bool = True,
) -> None:
    """Install CORS; origins default to the configured allow-list."""
    allowed = list(origins) if origins is not None else settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["Retry-After", "X-Request-ID"],
        max_age=3600,
    )


def install_security(app) -> None:
    app.add_middleware(SecurityHeadersMiddleware)


__all__ = ["SecurityHeadersMiddleware", "install_security", "configure_cors", "set_sensitive_cache"]
