# app/core/jwt.py
from __future__ import annotations

"""
ReelReviews — JWT helpers
=========================
- `decode_token` verifies signature and standard claims (exp/iat)
- Requires `sub`, optional `token_type` enforcement
- `decode_access_token()` returns a typed `TokenPayload`

Notes
-----
- Token *creation* lives in `app.core.security`.
- No `leeway` is passed to python-jose; standard `exp` checks apply.
"""

from typing import Any, Dict, Optional, Sequence
import logging

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import InvalidTokenException
from app.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────
# 🔓 Decode JWT Token
# ─────────────────────────────────────────────────────────────
def decode_token(token: str, *, expected_types: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Decode and validate a JWT.

    Raises
    ------
    InvalidTokenException
      401 for invalid/expired tokens, missing subject or type mismatch.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        logger.info("Token expired.")
        raise InvalidTokenException(detail="Token has expired.")
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise InvalidTokenException(detail="Invalid token.")

    if not payload.get("sub"):
        logger.warning("Missing sub in token payload.")
        raise InvalidTokenException(detail="Token missing user ID.")

    if expected_types is not None:
        token_type = payload.get("token_type")
        if token_type not in set(expected_types):
            logger.warning("Token type mismatch: got %r, expected one of %s", token_type, list(expected_types))
            raise InvalidTokenException(detail="Invalid token type.")

    return payload

def decode_access_token(token: str) -> TokenPayload:
    """Decode an access token into a structured `TokenPayload`."""
    payload = decode_token(token, expected_types=["access"])
    try:
        return TokenPayload(**payload)
    except ValidationError:
        logger.warning("Token payload failed validation (sub=%s)", payload.get("sub"))
        raise InvalidTokenException(detail="Invalid token payload.")


__all__ = ["decode_token", "decode_access_token"]
