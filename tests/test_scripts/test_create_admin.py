# tests/test_scripts/test_create_admin.py
from __future__ import annotations

import pytest

from app.core.security import verify_password
from app.repositories.user import MemoryUserRepository
from app.schemas.enums import UserRole
from scripts.create_admin import ensure_admin


@pytest.mark.anyio
async def test_creates_admin_account(store):
    users = MemoryUserRepository(store)

    user, created = await ensure_admin(users, "Root@Example.com", "root", "s3cret-pass")

    assert created is True
    assert user.email == "root@example.com"
    assert user.role == UserRole.ADMIN
    assert verify_password("s3cret-pass", user.hashed_password)


@pytest.mark.anyio
async def test_promotes_existing_account(store, create_test_user):
    existing = await create_test_user(email="boss@example.com")
    users = MemoryUserRepository(store)

    user, created = await ensure_admin(users, "boss@example.com", "ignored", "ignored-pass")

    assert created is False
    assert user.id == existing.id
    assert user.role == UserRole.ADMIN
    assert len(store.users) == 1
