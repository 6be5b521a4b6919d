# tests/conftest.py
"""
Global test bootstrap
- Required settings are provided BEFORE the app modules are imported
- Every test app runs on a fresh in-memory store (no database needed)
- Fixtures live under tests/fixtures
"""

from __future__ import annotations

import os

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set before importing app.*)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-reelreviews-0123456789")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("REPOSITORY_BACKEND", "memory")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# ──────────────────────────────────────────────────────────────────────────────
# 📦 Pull in the rest of the fixtures (store, app, users, catalog)
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.app import *      # noqa: E402,F401,F403
from tests.fixtures.users import *    # noqa: E402,F401,F403
from tests.fixtures.catalog import *  # noqa: E402,F401,F403
from tests.fixtures.sql import *      # noqa: E402,F401,F403
