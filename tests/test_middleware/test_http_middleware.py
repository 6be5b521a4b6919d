# tests/test_middleware/test_http_middleware.py
from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.core.limiter import build_rate_limiter
from app.main import create_app

BASE = "/api/v1"


# ─────────────────────────────────────────────────────────────
# 🆔 Request id
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_request_id_is_generated(async_client: AsyncClient):
    resp = await async_client.get(f"{BASE}/genres")

    assert UUID(resp.headers["x-request-id"]).version == 4


@pytest.mark.anyio
async def test_client_request_id_is_echoed(async_client: AsyncClient):
    rid = str(uuid4())

    resp = await async_client.get(f"{BASE}/genres", headers={"X-Request-ID": rid})

    assert resp.headers["x-request-id"] == rid


@pytest.mark.anyio
async def test_malformed_request_id_is_replaced(async_client: AsyncClient):
    resp = await async_client.get(f"{BASE}/genres", headers={"X-Request-ID": "not a uuid"})

    assert resp.headers["x-request-id"] != "not a uuid"


@pytest.mark.anyio
async def test_error_body_carries_request_id(async_client: AsyncClient):
    rid = str(uuid4())

    resp = await async_client.get(f"{BASE}/movies/{uuid4()}", headers={"X-Request-ID": rid})

    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["request_id"] == rid


# ─────────────────────────────────────────────────────────────
# 🛡️ Security headers
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_security_headers(async_client: AsyncClient):
    resp = await async_client.get("/healthz")

    assert resp.json() == {"ok": True}
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"
    assert "server" not in resp.headers


@pytest.mark.anyio
async def test_unknown_route_is_problem_json(async_client: AsyncClient):
    resp = await async_client.get("/definitely/not/here")

    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["status"] == 404


# ─────────────────────────────────────────────────────────────
# 📦 Body size
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_oversized_body_is_413(async_client: AsyncClient, user_auth, movie):
    _, headers = user_auth
    huge = "x" * (settings.MAX_BODY_BYTES + 1)

    resp = await async_client.post(
        f"{BASE}/movies/{movie.id}/reviews",
        json={"rating": 5, "title": "t", "content": huge},
        headers=headers,
    )

    assert resp.status_code == 413
    assert resp.headers["content-type"].startswith("application/problem+json")


# ─────────────────────────────────────────────────────────────
# ⏱️ Rate limiting
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_rate_limit_returns_429_and_exempts_health_checks(store):
    app = create_app(store=store, limiter=build_rate_limiter(["2/minute"], storage_uri="memory://"))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        statuses = [(await client.get(f"{BASE}/genres")).status_code for _ in range(3)]
        health = [(await client.get("/healthz")).status_code for _ in range(3)]

        limited = await client.get(f"{BASE}/genres")

    assert statuses == [200, 200, 429]
    assert health == [200, 200, 200]
    assert limited.headers["content-type"].startswith("application/problem+json")
    assert "retry-after" in limited.headers


@pytest.mark.anyio
async def test_rate_limit_is_per_client_ip(store):
    app = create_app(store=store, limiter=build_rate_limiter(["1/minute"], storage_uri="memory://"))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        first = await client.get(f"{BASE}/genres", headers={"X-Forwarded-For": "10.0.0.1"})
        other = await client.get(f"{BASE}/genres", headers={"X-Forwarded-For": "10.0.0.2"})
        again = await client.get(f"{BASE}/genres", headers={"X-Forwarded-For": "10.0.0.1"})

    assert (first.status_code, other.status_code, again.status_code) == (200, 200, 429)


# ─────────────────────────────────────────────────────────────
# 🩺 Readiness
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_readyz_reports_worker(app, async_client: AsyncClient):
    before = await async_client.get("/readyz")
    async with app.router.lifespan_context(app):
        during = await async_client.get("/readyz")

    assert before.json()["checks"]["review_worker"] is False
    assert during.status_code == 200
    assert during.json()["checks"] == {"db": True, "review_worker": True, "dropped_review_events": 0}
