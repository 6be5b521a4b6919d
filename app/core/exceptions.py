# app/core/exceptions.py
from __future__ import annotations

"""
ReelReviews — Application Exceptions
====================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets services raise typed domain errors which the HTTP boundary renders with
the right status code (see `app.core.exception_handlers`).

Key ideas
---------
- One base `AppException` that carries `code`, `request_id`, `user_id`, `details`, `extra`.
- Domain exceptions inherit from it and fix their status code:
  404 not found, 409 conflict, 403 forbidden, 401 auth, 400 bad input.
- Services raise them synchronously; they never wrap secondary-effect failures.

Usage
-----
    raise ReviewAlreadyExistsException(movie_id=movie_id, user_id=user_id)
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "NotFoundException",
    "ConflictException",
    "MovieNotFoundException",
    "ReviewNotFoundException",
    "GenreNotFoundException",
    "UserNotFoundException",
    "ReviewAlreadyExistsException",
    "GenreAlreadyExistsException",
    "UserAlreadyExistsException",
    "ForbiddenException",
    "CannotDeleteSelfException",
    "InvalidRoleException",
    "NoGenresProvidedException",
    "InvalidCredentialsException",
    "InvalidTokenException",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/401/403/404/409/422/500).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    request_id : str | None
        Optional request correlation id.
    user_id : str | None
        User id for auditing/context.
    details : dict | list | str | None
        Machine-readable details (e.g., ids, constraints).
    extra : dict | None
        Additional non-sensitive metadata to surface to clients.
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.request_id: Optional[str] = request_id
        self.user_id: Optional[str] = user_id
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    def __str__(self) -> str:
        return self.message

    # ── [Helper] Canonical body used by handlers ───────────────────────────
    def to_problem(self, *, fallback_request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return a dict matching our problem-like JSON shape."""
        body: Dict[str, Any] = {
            "error": True,
            "message": self.message,
            "code": self.code,
            "request_id": self.request_id or fallback_request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        # Avoid leaking obvious secrets if someone passed them in `extra`.
        extra_sanitized = dict(self.extra) if self.extra else {}
        for k in ("token", "authorization", "password", "secret"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# 🔎 Not found (404)
# ──────────────────────────────────────────────────────────────
class NotFoundException(AppException):
    """Generic 404 for a missing resource."""

    resource: str = "Resource"

    def __init__(self, *, details: Optional[Any] = None, **ids: Any) -> None:
        merged = dict(details or {})
        merged.update({k: str(v) for k, v in ids.items() if v is not None})
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=f"{self.resource} not found",
            details=merged or None,
        )


class MovieNotFoundException(NotFoundException):
    resource = "Movie"


class ReviewNotFoundException(NotFoundException):
    resource = "Review"


class GenreNotFoundException(NotFoundException):
    resource = "Genre"


class UserNotFoundException(NotFoundException):
    resource = "User"


# ──────────────────────────────────────────────────────────────
# ⚔️ Conflicts (409)
# ──────────────────────────────────────────────────────────────
class ConflictException(AppException):
    """Generic 409 for uniqueness violations."""

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, message=message, details=details)


class ReviewAlreadyExistsException(ConflictException):
    """A user may review a given movie only once."""

    def __init__(self, *, movie_id: Any = None, user_id: Any = None) -> None:
        details = {k: str(v) for k, v in {"movie_id": movie_id, "user_id": user_id}.items() if v is not None}
        super().__init__("Review already exists", details=details or None)


class GenreAlreadyExistsException(ConflictException):
    def __init__(self, *, name: Optional[str] = None) -> None:
        super().__init__("Genre already exists", details={"name": name} if name else None)


class UserAlreadyExistsException(ConflictException):
    def __init__(self, *, field: Optional[str] = None) -> None:
        super().__init__("User already exists", details={"field": field} if field else None)


# ──────────────────────────────────────────────────────────────
# 🔐 Authorization (403) / bad input (400)
# ──────────────────────────────────────────────────────────────
class ForbiddenException(AppException):
    """Requester is neither the owner nor entitled by role."""

    def __init__(self, message: str = "Forbidden", *, user_id: Optional[str] = None) -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, message=message, user_id=user_id)


class CannotDeleteSelfException(AppException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message="Cannot delete yourself")


class InvalidRoleException(AppException):
    def __init__(self, role: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Invalid role",
            details={"role": role},
        )


class NoGenresProvidedException(AppException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message="At least one genre required")


# ──────────────────────────────────────────────────────────────
# 🔑 Auth/Token exceptions (401)
# ──────────────────────────────────────────────────────────────
class InvalidCredentialsException(AppException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, message="Invalid credentials")


class InvalidTokenException(AppException):
    """Raised for invalid or expired tokens (401 by default)."""

    def __init__(
        self,
        *,
        detail: str = "Invalid or expired token",
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        headers: Optional[Dict[str, str]] = None,
        details: Optional[Any] = None,
    ) -> None:
        headers = headers or {"WWW-Authenticate": "Bearer"}
        super().__init__(
            status_code=status_code,
            message=detail,
            code=status_code,
            details=details,
            headers=headers,
        )
