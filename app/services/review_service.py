# app/services/review_service.py
from __future__ import annotations

"""
ReelReviews — Review service
============================

The only writer of review rows. Every successful mutation is followed by two
best-effort secondary effects, neither of which can fail the request:

1. a synchronous recompute of the movie's `average_rating`;
2. a non-blocking `ReviewEvent` publish for the background worker.

Authorization rules
-------------------
- Update: author only (admins have no update rights on others' reviews).
- Delete: author, or any admin.

Partial updates treat zero values as "unchanged": `rating == 0`, `title == ""`
and `content == ""` (or omitted fields) keep the stored value.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from app.core.exceptions import (
    ForbiddenException,
    MovieNotFoundException,
    ReviewAlreadyExistsException,
    ReviewNotFoundException,
)
from app.db.models import Review
from app.repositories.movie import MovieRepositoryProtocol
from app.repositories.review import ReviewRepositoryProtocol
from app.schemas.common import normalize_page
from app.schemas.enums import ReviewEventType
from app.schemas.review import ReviewCreate, ReviewFilters, ReviewUpdate
from app.services.review_events import ReviewEvent, ReviewEventChannel

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(
        self,
        reviews: ReviewRepositoryProtocol,
        movies: MovieRepositoryProtocol,
        events: Optional[ReviewEventChannel] = None,
    ) -> None:
        self.reviews = reviews
        self.movies = movies
        self.events = events

    # ─────────────────────────────────────────────────────────────
    # 📖 Reads
    # ─────────────────────────────────────────────────────────────
    async def get(self, review_id: UUID) -> Review:
        review = await self.reviews.get_by_id(review_id)
        if review is None:
            raise ReviewNotFoundException(review_id=review_id)
        return review

    async def list_by_movie(
        self,
        movie_id: UUID,
        filters: Optional[ReviewFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Review], int, int, int]:
        """Return `(items, total, page, limit)` after normalizing pagination."""
        filters = filters or ReviewFilters()
        page, limit = normalize_page(page, limit)
        items = await self.reviews.list_by_movie(movie_id, filters, limit, (page - 1) * limit)
        total = await self.reviews.count_by_movie(movie_id, filters)
        return items, total, page, limit

    async def list_by_user(
        self,
        user_id: UUID,
        filters: Optional[ReviewFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Review], int, int, int]:
        filters = filters or ReviewFilters()
        page, limit = normalize_page(page, limit)
        items = await self.reviews.list_by_user(user_id, filters, limit, (page - 1) * limit)
        total = await self.reviews.count_by_user(user_id, filters)
        return items, total, page, limit

    async def count_by_user(self, user_id: UUID) -> int:
        return await self.reviews.count_by_user(user_id)

    # ─────────────────────────────────────────────────────────────
    # ✍️ Mutations
    # ─────────────────────────────────────────────────────────────
    async def create(self, movie_id: UUID, user_id: UUID, payload: ReviewCreate) -> Review:
        if await self.movies.get_by_id(movie_id) is None:
            raise MovieNotFoundException(movie_id=movie_id)

        if await self.reviews.get_by_movie_and_user(movie_id, user_id) is not None:
            raise ReviewAlreadyExistsException(movie_id=movie_id, user_id=user_id)

        review = Review(
            movie_id=movie_id,
            user_id=user_id,
            rating=payload.rating,
            title=payload.title,
            content=payload.content,
        )
        review = await self.reviews.create(review)

        await self._recompute(movie_id)
        self._emit(ReviewEventType.CREATED, review)
        logger.info("Review %s created for movie %s by %s", review.id, movie_id, user_id)
        return review

    async def update(self, review_id: UUID, requester_id: UUID, payload: ReviewUpdate) -> Review:
        review = await self.get(review_id)
        if review.user_id != requester_id:
            raise ForbiddenException("Only the author can edit this review", user_id=str(requester_id))

        if payload.rating:
            review.rating = payload.rating
        if payload.title:
            review.title = payload.title
        if payload.content:
            review.content = payload.content

        review = await self.reviews.update(review)

        await self._recompute(review.movie_id)
        self._emit(ReviewEventType.UPDATED, review)
        return review

    async def delete(self, review_id: UUID, requester_id: UUID, is_admin: bool = False) -> None:
        review = await self.get(review_id)
        if not is_admin and review.user_id != requester_id:
            raise ForbiddenException("Not allowed to delete this review", user_id=str(requester_id))

        movie_id, author_id = review.movie_id, review.user_id
        await self.reviews.delete(review_id)

        await self._recompute(movie_id)
        self._emit(ReviewEventType.DELETED, review_id=review_id, movie_id=movie_id, user_id=author_id)
        logger.info("Review %s deleted by %s (admin=%s)", review_id, requester_id, is_admin)

    # ─────────────────────────────────────────────────────────────
    # 🔧 Secondary effects (never raise)
    # ─────────────────────────────────────────────────────────────
    async def _recompute(self, movie_id: UUID) -> None:
        try:
            await self.movies.update_average_rating(movie_id)
        except Exception:
            logger.exception("Inline average rating recompute failed for movie %s", movie_id)

    def _emit(
        self,
        event_type: ReviewEventType,
        review: Optional[Review] = None,
        *,
        review_id: Optional[UUID] = None,
        movie_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> None:
        if self.events is None:
            return
        if review is not None:
            review_id, movie_id, user_id = review.id, review.movie_id, review.user_id
        try:
            self.events.publish(
                ReviewEvent(type=event_type, movie_id=movie_id, user_id=user_id, review_id=review_id)
            )
        except Exception:
            logger.exception("Publishing %s failed for review %s", event_type.value, review_id)


__all__ = ["ReviewService"]
