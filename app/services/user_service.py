# app/services/user_service.py
from __future__ import annotations

"""
ReelReviews — User account service
==================================

Covers both the self-service profile (`/me`) and admin user management.

Rules
-----
- Email/username stay unique (409 `UserAlreadyExists`).
- Unknown roles are rejected with 400 `InvalidRole`.
- An admin can never delete their own account (400 `CannotDeleteSelf`).
- Deleting a user removes their reviews, so the affected movie averages are
  recomputed afterwards.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from app.core.exceptions import (
    CannotDeleteSelfException,
    InvalidCredentialsException,
    InvalidRoleException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from app.core.security import get_password_hash, verify_password
from app.db.models import User
from app.repositories.movie import MovieRepositoryProtocol
from app.repositories.review import ReviewRepositoryProtocol
from app.repositories.user import UserRepositoryProtocol
from app.schemas.common import normalize_page
from app.schemas.enums import UserRole
from app.schemas.review import ReviewFilters
from app.schemas.user import PasswordUpdate, UserFilters, UserStats, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        users: UserRepositoryProtocol,
        reviews: Optional[ReviewRepositoryProtocol] = None,
        movies: Optional[MovieRepositoryProtocol] = None,
    ) -> None:
        self.users = users
        self.reviews = reviews
        self.movies = movies

    # ─────────────────────────────────────────────────────────────
    # 📖 Reads
    # ─────────────────────────────────────────────────────────────
    async def get(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundException(user_id=user_id)
        return user

    async def list(
        self,
        filters: Optional[UserFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], int, int, int]:
        page, limit = normalize_page(page, limit)
        items, total = await self.users.list(filters or UserFilters(), limit, (page - 1) * limit)
        return items, total, page, limit

    async def get_stats(self, user_id: UUID) -> UserStats:
        """Review count, mean rating given and most-reviewed genre for a user."""
        await self.get(user_id)
        if self.reviews is None:
            return UserStats()
        favorite = await self.reviews.favorite_genre_by_user(user_id)
        return UserStats(
            total_reviews=await self.reviews.count_by_user(user_id),
            average_rating=round(await self.reviews.average_rating_by_user(user_id), 2),
            favorite_genre=favorite.name if favorite is not None else None,
        )

    # ─────────────────────────────────────────────────────────────
    # ✍️ Profile / admin edits
    # ─────────────────────────────────────────────────────────────
    async def update(self, user_id: UUID, payload: UserUpdate) -> User:
        user = await self.get(user_id)

        if payload.email:
            email = payload.email.strip().lower()
            other = await self.users.get_by_email(email)
            if other is not None and other.id != user.id:
                raise UserAlreadyExistsException(field="email")
            user.email = email
        if payload.username:
            other = await self.users.get_by_username(payload.username)
            if other is not None and other.id != user.id:
                raise UserAlreadyExistsException(field="username")
            user.username = payload.username

        return await self.users.update(user)

    async def update_profile(self, user_id: UUID, payload: UserUpdate) -> User:
        return await self.update(user_id, payload)

    async def update_password(self, user_id: UUID, payload: PasswordUpdate) -> None:
        user = await self.get(user_id)
        if not verify_password(payload.current_password, user.hashed_password):
            raise InvalidCredentialsException()
        user.hashed_password = get_password_hash(payload.new_password)
        await self.users.update(user)
        logger.info("Password changed for user %s", user_id)

    async def update_role(self, user_id: UUID, role: str) -> User:
        parsed = UserRole.parse(role)
        if parsed is None:
            raise InvalidRoleException(role)
        user = await self.get(user_id)
        user.role = parsed
        user = await self.users.update(user)
        logger.info("User %s role set to %s", user_id, parsed.value)
        return user

    async def delete(self, user_id: UUID, admin_id: UUID) -> None:
        if user_id == admin_id:
            raise CannotDeleteSelfException()
        await self.get(user_id)

        movie_ids: List[UUID] = []
        if self.reviews is not None:
            total = await self.reviews.count_by_user(user_id)
            if total:
                reviewed = await self.reviews.list_by_user(user_id, ReviewFilters(), total, 0)
                movie_ids = list(dict.fromkeys(r.movie_id for r in reviewed))

        await self.users.delete(user_id)
        logger.info("User %s deleted by admin %s", user_id, admin_id)

        if self.movies is not None:
            for movie_id in movie_ids:
                try:
                    await self.movies.update_average_rating(movie_id)
                except Exception:
                    logger.exception("Average rating recompute failed for movie %s", movie_id)


__all__ = ["UserService"]
