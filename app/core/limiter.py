from __future__ import annotations

"""
ReelReviews — HTTP Rate Limiting (SlowAPI)
==========================================

Highlights
----------
- **Explicit component**: `build_rate_limiter()` returns a fresh `Limiter`
  that `install_rate_limiter()` attaches to one application
  (`app.state.limiter` + `SlowAPIMiddleware`). No module-level global.
- **IP keying** using XFF / X-Real-IP / client.host.
- **Fixed window** with the default `RATE_LIMIT_PER_MINUTE/minute` applied to
  every route; health probes are exempted by the app factory.
- **Backends**: `RATELIMIT_STORAGE_URI` (e.g. Redis) or `memory://`.

Usage
-----
    from app.core.limiter import build_rate_limiter, install_rate_limiter

    app = FastAPI()
    limiter = build_rate_limiter()
    install_rate_limiter(app, limiter)

    @limiter.exempt
    async def health(): ...
"""

from typing import List, Optional

from loguru import logger
from starlette.requests import Request
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import settings

STRATEGY = "fixed-window"


# ──────────────────────────────────────────────────────────────
# 🧠 Keying
# ──────────────────────────────────────────────────────────────
def _client_ip(request: Request) -> str:
    """
    Best-effort client IP:
    1) X-Forwarded-For (first hop)
    2) X-Real-IP
    3) ASGI client.host
    """
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri and xri.strip():
        return xri.strip()
    return get_remote_address(request) or "unknown"


def rate_limit_key(request: Request) -> str:
    return f"ip:{_client_ip(request)}"


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter factory
# ──────────────────────────────────────────────────────────────
def default_limits() -> List[str]:
    return [f"{settings.RATE_LIMIT_PER_MINUTE}/minute"]


def build_rate_limiter(
    limits: Optional[List[str]] = None,
    *,
    storage_uri: Optional[str] = None,
    enabled: Optional[bool] = None,
) -> Limiter:
    """Build a per-application limiter; arguments override the settings."""
    storage = storage_uri or settings.ratelimit_storage
    selected = list(limits) if limits else default_limits()
    limiter = Limiter(
        key_func=rate_limit_key,
        default_limits=selected,
        headers_enabled=True,
        storage_uri=storage,
        strategy=STRATEGY,
        enabled=settings.RATE_LIMIT_ENABLED if enabled is None else enabled,
    )
    logger.info("RateLimiter ready | default={} | storage={} | enabled={}", selected, storage, limiter.enabled)
    return limiter


# ──────────────────────────────────────────────────────────────
# 🔧 Installer
# ──────────────────────────────────────────────────────────────
def install_rate_limiter(app, limiter: Limiter) -> None:
    """Attach `limiter` to `app` and install the SlowAPI middleware."""
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    logger.info("SlowAPI middleware installed")


__all__ = ["build_rate_limiter", "install_rate_limiter", "rate_limit_key", "default_limits"]
