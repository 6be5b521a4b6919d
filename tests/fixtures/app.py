# tests/fixtures/app.py

"""
🧩 App Fixtures:
- `store`: a fresh in-memory backend per test
- `app`: the real application factory wired to that store
- `async_client`: httpx client over ASGITransport (no network, no lifespan)
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.limiter import build_rate_limiter
from app.main import create_app
from app.repositories.memory import MemoryStore

BASE = "/api/v1"


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def app(store: MemoryStore) -> FastAPI:
    """🧪 Full application (middlewares, handlers, routers) on an isolated store."""
    return create_app(store=store, limiter=build_rate_limiter(storage_uri="memory://"))


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
