# app/services/auth/login_service.py
from __future__ import annotations

"""
Login service — ReelReviews
===========================

- **Email + password login** returning a signed access token.
- **Neutral errors**: unknown email and wrong password both yield 401
  `InvalidCredentials` to avoid user enumeration.
"""

import logging
from typing import Tuple

from app.core.exceptions import InvalidCredentialsException
from app.core.security import create_access_token, verify_password
from app.db.models import User
from app.repositories.user import UserRepositoryProtocol
from app.schemas.auth import LoginRequest

logger = logging.getLogger(__name__)


async def login_user(payload: LoginRequest, users: UserRepositoryProtocol) -> Tuple[User, str]:
    """Authenticate and return `(user, access_token)`."""
    user = await users.get_by_email(payload.email.strip().lower())
    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.info("Login failed")
        raise InvalidCredentialsException()
    return user, create_access_token(user.id, user.role)
