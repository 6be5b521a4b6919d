"""
Signup service — ReelReviews
============================

Core implementation for **new user registration**, kept apart from the API layer.

Key behaviors
-------------
- **Normalized email** and server-side **bcrypt** password hashing.
- **Duplicate detection** on email and username (409), backed by the unique
  constraints for racing requests.
- Returns the created user together with a ready-to-use access token.
"""

from __future__ import annotations

import logging
from typing import Tuple

from app.core.exceptions import UserAlreadyExistsException
from app.core.security import create_access_token, get_password_hash
from app.db.models import User
from app.repositories.user import UserRepositoryProtocol
from app.schemas.auth import RegisterRequest
from app.schemas.enums import UserRole

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────
def _norm_email(email: str) -> str:
    return (email or "").strip().lower()


# ─────────────────────────────────────────────────────────────
# 📝 Register a new user
# ─────────────────────────────────────────────────────────────
async def register_user(
    payload: RegisterRequest,
    users: UserRepositoryProtocol,
    *,
    role: UserRole = UserRole.USER,
) -> Tuple[User, str]:
    """Create an account and return `(user, access_token)`.

    Raises
    ------
    UserAlreadyExistsException
        When the email or username is already taken.
    """
    email = _norm_email(payload.email)
    if await users.get_by_email(email) is not None:
        raise UserAlreadyExistsException(field="email")
    if await users.get_by_username(payload.username) is not None:
        raise UserAlreadyExistsException(field="username")

    user = User(
        email=email,
        username=payload.username,
        hashed_password=get_password_hash(payload.password),
        role=role,
    )
    user = await users.create(user)
    logger.info("User registered id=%s role=%s", user.id, user.role.value)
    return user, create_access_token(user.id, user.role)
