# app/core/security.py
from __future__ import annotations

"""
ReelReviews — Authentication & Security Helpers
===============================================
- Password hashing with Passlib (bcrypt)
- Access token creation (HS256 by default; `sub` = user id, `role` claim)
- Clean FastAPI dependencies for the **current user** and **admin-only** routes

Token *decoding* lives in `app.core.jwt`. The role is trusted from the token,
so authorization checks never hit the database.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict

from app.core.config import settings
from app.core.exceptions import ForbiddenException, InvalidTokenException
from app.core.jwt import decode_access_token
from app.schemas.auth import TokenPayload
from app.schemas.enums import UserRole

# ───────────────────────────────────────────────
# 🔐 Security Constants and Setup
# ───────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    """Return a salted hash using Passlib's bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time verify of a plaintext password against a stored hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed/unknown hash format
        return False


# ───────────────────────────────────────────────
# 🪪 JWT: Access Token Generation
# ───────────────────────────────────────────────
def create_access_token(
    user_id: UUID,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed **access token** carrying the user id and role."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "exp": expire,
        "iat": now,
        "jti": str(uuid4()),
        "token_type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


# ───────────────────────────────────────────────
# 👤 Dependency: Get Current User
# ───────────────────────────────────────────────
class CurrentUser(BaseModel):
    """Authenticated principal as described by the access token."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Authenticate from the bearer access token (no DB lookup).

    Steps:
    1) Require a Bearer credential.
    2) Decode & validate JWT via `app.core.jwt`.
    3) Attach the parsed payload to `request.state`.
    """
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise InvalidTokenException(detail="Missing bearer token")

    payload: TokenPayload = decode_access_token(credentials.credentials)
    try:
        user_id = UUID(payload.sub)
    except ValueError:
        raise InvalidTokenException(detail="Invalid token: malformed subject")

    request.state.user_id = user_id
    request.state.token_payload = payload
    return CurrentUser(id=user_id, role=payload.role)


async def admin_user(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dependency for admin-only routes (403 for authenticated non-admins)."""
    if not current_user.is_admin:
        raise ForbiddenException("Admin access required", user_id=str(current_user.id))
    return current_user


__all__ = [
    "pwd_context",
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "CurrentUser",
    "get_current_user",
    "admin_user",
]
