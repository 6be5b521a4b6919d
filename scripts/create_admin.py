#!/usr/bin/env python3
"""
ReelReviews • Create Admin
==========================

Create an admin account, or promote the existing account with that email.

Usage
-----
    python scripts/create_admin.py \
      --email admin@example.com \
      --username admin \
      --password 'change-me-now'
"""

import argparse
import asyncio
import os
import sys
from typing import Optional, Sequence, Tuple

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.db.models import User  # noqa: E402
from app.repositories.user import UserRepositoryProtocol  # noqa: E402
from app.schemas.auth import RegisterRequest  # noqa: E402
from app.schemas.enums import UserRole  # noqa: E402
from app.services.auth.signup_service import register_user  # noqa: E402


async def ensure_admin(
    users: UserRepositoryProtocol, email: str, username: str, password: str
) -> Tuple[User, bool]:
    """Return `(user, created)`; an existing account is promoted in place."""
    existing = await users.get_by_email(email.strip().lower())
    if existing is not None:
        if existing.role != UserRole.ADMIN:
            existing.role = UserRole.ADMIN
            existing = await users.update(existing)
        return existing, False

    payload = RegisterRequest(email=email, username=username, password=password)
    user, _ = await register_user(payload, users, role=UserRole.ADMIN)
    return user, True


async def _run(args: argparse.Namespace) -> int:
    from app.db.session import async_engine, async_session_maker
    from app.repositories.user import SqlAlchemyUserRepository

    try:
        async with async_session_maker() as session:
            user, created = await ensure_admin(
                SqlAlchemyUserRepository(session), args.email, args.username, args.password
            )
    finally:
        await async_engine.dispose()

    print(f"{'Created' if created else 'Promoted'} admin {user.email} ({user.id})")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Create or promote a ReelReviews admin account")
    ap.add_argument("--email", required=True)
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", required=True, help="6 to 72 characters")
    args = ap.parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
