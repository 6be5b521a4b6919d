# app/main.py
from __future__ import annotations

"""
# ReelReviews API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the movie review backend.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order** (outermost first):
  1) request id → 2) security headers / strip `Server` → 3) CORS →
  4) body size limit → 5) rate limits.
- Centralized problem+json exception handling.
- One **review event worker** per process: the channel is created with the
  app, the consumer task is started on startup and stopped cooperatively on
  shutdown.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (quick DB check; always ready on the memory backend).
- `/api/v1/health` — public API health.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from app.core import logger as _logsetup  # noqa: F401

from app.core.config import settings
from app.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    rate_limit_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import AppException
from app.core.limiter import build_rate_limiter, install_rate_limiter
from app.db.session import async_engine, async_session_maker, db_healthcheck
from app.middleware.body_limit import BodySizeLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.repositories.audit import MemoryAuditRepository, SessionAuditWriter
from app.repositories.memory import MemoryStore, memory_store
from app.repositories.movie import MemoryMovieRepository, SessionMovieRater
from app.security_headers import configure_cors, install_security
from app.services.review_events import ReviewEventChannel
from app.services.review_worker import ReviewEventWorker

logger = logging.getLogger("app.main")


def _build_worker(app: FastAPI) -> ReviewEventWorker:
    """Worker side effects use the app's memory store, or one DB session per call."""
    store: Optional[MemoryStore] = app.state.memory_store
    if store is not None:
        return ReviewEventWorker(app.state.review_events, MemoryMovieRepository(store), MemoryAuditRepository(store))
    return ReviewEventWorker(
        app.state.review_events,
        SessionMovieRater(async_session_maker),
        SessionAuditWriter(async_session_maker),
    )


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup:
        - Start the review event worker with a fresh stop event.

    Shutdown:
        - Signal the worker and wait for it to finish its current event.
        - Dispose the DB engine (SQL backend only).
    """
    logger.info("✅ %s starting up (backend=%s)", settings.PROJECT_NAME, settings.REPOSITORY_BACKEND)

    stop_event = asyncio.Event()
    worker = _build_worker(app)
    app.state.review_worker = worker
    worker.start(stop_event)

    try:
        yield
    finally:
        await worker.stop()
        if app.state.memory_store is None:
            try:
                await async_engine.dispose()
                logger.info("🛑 Database engine disposed")
            except Exception:
                logger.exception("Error disposing DB engine")
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    *,
    store: Optional[MemoryStore] = None,
    limiter: Optional[Limiter] = None,
    event_queue_size: Optional[int] = None,
) -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Args:
        store: in-memory backend to serve from. Defaults to the process-wide
            store when `REPOSITORY_BACKEND=memory`, otherwise SQL is used.
        limiter: rate limiter to install (defaults to `build_rate_limiter()`).
        event_queue_size: review event channel capacity
            (defaults to `REVIEW_EVENT_QUEUE_SIZE`).
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    if store is None and settings.REPOSITORY_BACKEND == "memory":
        store = memory_store
    app.state.memory_store = store
    app.state.review_events = ReviewEventChannel(event_queue_size or settings.REVIEW_EVENT_QUEUE_SIZE)

    # ── Middlewares (added innermost first) ────────────────────────────────
    limiter = limiter or build_rate_limiter()
    install_rate_limiter(app, limiter)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)
    configure_cors(app)
    install_security(app)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ─────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers (versioned API) ─────────────────────────────────────────────
    from app.api.v1.routers import router as api_v1_router

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get(f"{settings.API_V1_STR}/health", tags=["meta"])
    @limiter.exempt
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/healthz", tags=["meta"])
    @limiter.exempt
    async def healthz() -> dict[str, bool]:
        """Liveness probe: `{"ok": True}` when the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @limiter.exempt
    async def readyz() -> JSONResponse:
        """Readiness probe: 503 when the database is unreachable."""
        db_ok = True if app.state.memory_store is not None else await db_healthcheck()
        worker = getattr(app.state, "review_worker", None)
        body = {
            "ready": db_ok,
            "checks": {
                "db": db_ok,
                "review_worker": bool(worker and worker.running),
                "dropped_review_events": app.state.review_events.dropped,
            },
        }
        return JSONResponse(body, status_code=200 if db_ok else 503)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse({"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION})

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app", "lifespan"]


# Local dev runner (prefer: `uvicorn app.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
