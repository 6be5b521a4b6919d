from __future__ import annotations

"""
Review store.

`ReviewRepositoryProtocol` lists exactly what the services need. Two
implementations follow: SQLAlchemy (PostgreSQL) and in-memory. Both enforce
one review per (movie, user) at write time and raise
`ReviewAlreadyExistsException` on a duplicate, which covers the race between the
service's pre-check and the insert.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ReviewAlreadyExistsException
from app.db.models import Genre, Review, movie_genres
from app.repositories.memory import MemoryStore, paginate
from app.schemas.enums import ReviewSort
from app.schemas.review import ReviewFilters

logger = logging.getLogger(__name__)


class ReviewRepositoryProtocol:
    async def get_by_id(self, review_id: UUID) -> Optional[Review]:
        raise NotImplementedError

    async def get_by_movie_and_user(self, movie_id: UUID, user_id: UUID) -> Optional[Review]:
        raise NotImplementedError

    async def create(self, review: Review) -> Review:
        raise NotImplementedError

    async def update(self, review: Review) -> Review:
        raise NotImplementedError

    async def delete(self, review_id: UUID) -> None:
        raise NotImplementedError

    async def list_by_movie(self, movie_id: UUID, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        raise NotImplementedError

    async def list_by_user(self, user_id: UUID, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        raise NotImplementedError

    async def count_by_movie(self, movie_id: UUID, filters: Optional[ReviewFilters] = None) -> int:
        raise NotImplementedError

    async def count_by_user(self, user_id: UUID, filters: Optional[ReviewFilters] = None) -> int:
        raise NotImplementedError

    async def count(self, since: Optional[datetime] = None) -> int:
        raise NotImplementedError

    async def average_rating_by_user(self, user_id: UUID) -> float:
        raise NotImplementedError

    async def favorite_genre_by_user(self, user_id: UUID) -> Optional[Genre]:
        raise NotImplementedError


# ──────────────────────────────────────────────────────────────
# 🐘 SQLAlchemy
# ──────────────────────────────────────────────────────────────
_ORDER_BY = {
    ReviewSort.RATING_DESC: (Review.rating.desc(), Review.created_at.desc()),
    ReviewSort.RATING_ASC: (Review.rating.asc(), Review.created_at.desc()),
    ReviewSort.CREATED_DESC: (Review.created_at.desc(),),
    ReviewSort.CREATED_ASC: (Review.created_at.asc(),),
}


def _apply_filters(stmt: Select, filters: Optional[ReviewFilters]) -> Select:
    if filters is None:
        return stmt
    if filters.min_rating:
        stmt = stmt.where(Review.rating >= filters.min_rating)
    if filters.max_rating:
        stmt = stmt.where(Review.rating <= filters.max_rating)
    return stmt


class SqlAlchemyReviewRepository(ReviewRepositoryProtocol):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, review_id: UUID) -> Optional[Review]:
        return await self.session.get(Review, review_id)

    async def get_by_movie_and_user(self, movie_id: UUID, user_id: UUID) -> Optional[Review]:
        result = await self.session.execute(
            select(Review).where(Review.movie_id == movie_id, Review.user_id == user_id)
        )
        return result.scalars().first()

    async def create(self, review: Review) -> Review:
        self.session.add(review)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Duplicate review rejected by constraint: %s", exc.orig)
            raise ReviewAlreadyExistsException(movie_id=review.movie_id, user_id=review.user_id) from exc
        await self.session.refresh(review)
        return self._detach(review)

    async def update(self, review: Review) -> Review:
        self.session.add(review)
        await self.session.commit()
        await self.session.refresh(review)
        return self._detach(review)

    def _detach(self, review: Review) -> Review:
        # Fully loaded and detached: a later rollback on this session cannot expire it.
        self.session.expunge(review)
        return review

    async def delete(self, review_id: UUID) -> None:
        await self.session.execute(delete(Review).where(Review.id == review_id))
        await self.session.commit()

    async def _list(self, stmt: Select, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        stmt = _apply_filters(stmt, filters).order_by(*_ORDER_BY[filters.sort]).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_movie(self, movie_id: UUID, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        return await self._list(select(Review).where(Review.movie_id == movie_id), filters, limit, offset)

    async def list_by_user(self, user_id: UUID, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        return await self._list(select(Review).where(Review.user_id == user_id), filters, limit, offset)

    async def count_by_movie(self, movie_id: UUID, filters: Optional[ReviewFilters] = None) -> int:
        stmt = _apply_filters(select(func.count(Review.id)).where(Review.movie_id == movie_id), filters)
        return int((await self.session.execute(stmt)).scalar_one())

    async def count_by_user(self, user_id: UUID, filters: Optional[ReviewFilters] = None) -> int:
        stmt = _apply_filters(select(func.count(Review.id)).where(Review.user_id == user_id), filters)
        return int((await self.session.execute(stmt)).scalar_one())

    async def count(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count(Review.id))
        if since is not None:
            stmt = stmt.where(Review.created_at >= since)
        return int((await self.session.execute(stmt)).scalar_one())

    async def average_rating_by_user(self, user_id: UUID) -> float:
        stmt = select(func.avg(Review.rating)).where(Review.user_id == user_id)
        value = (await self.session.execute(stmt)).scalar_one_or_none()
        return float(value) if value is not None else 0.0

    async def favorite_genre_by_user(self, user_id: UUID) -> Optional[Genre]:
        stmt = (
            select(Genre)
            .join(movie_genres, movie_genres.c.genre_id == Genre.id)
            .join(Review, Review.movie_id == movie_genres.c.movie_id)
            .where(Review.user_id == user_id)
            .group_by(Genre.id)
            .order_by(func.count().desc(), Genre.name)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalars().first()


# ──────────────────────────────────────────────────────────────
# 🧪 In-memory
# ──────────────────────────────────────────────────────────────
def _matches(review: Review, filters: Optional[ReviewFilters]) -> bool:
    if filters is None:
        return True
    if filters.min_rating and review.rating < filters.min_rating:
        return False
    if filters.max_rating and review.rating > filters.max_rating:
        return False
    return True


def _sorted(items: List[Review], sort: ReviewSort) -> List[Review]:
    if sort == ReviewSort.RATING_DESC:
        return sorted(items, key=lambda r: (-r.rating, -r.created_at.timestamp()))
    if sort == ReviewSort.RATING_ASC:
        return sorted(items, key=lambda r: (r.rating, -r.created_at.timestamp()))
    if sort == ReviewSort.CREATED_ASC:
        return sorted(items, key=lambda r: r.created_at)
    return sorted(items, key=lambda r: r.created_at, reverse=True)


class MemoryReviewRepository(ReviewRepositoryProtocol):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    async def get_by_id(self, review_id: UUID) -> Optional[Review]:
        return self.store.reviews.get(review_id)

    async def get_by_movie_and_user(self, movie_id: UUID, user_id: UUID) -> Optional[Review]:
        for review in self.store.reviews.values():
            if review.movie_id == movie_id and review.user_id == user_id:
                return review
        return None

    async def create(self, review: Review) -> Review:
        if await self.get_by_movie_and_user(review.movie_id, review.user_id) is not None:
            raise ReviewAlreadyExistsException(movie_id=review.movie_id, user_id=review.user_id)
        now = self.store.now()
        if review.id is None:
            review.id = uuid4()
        review.created_at = now
        review.updated_at = now
        self.store.reviews[review.id] = review
        return review

    async def update(self, review: Review) -> Review:
        review.updated_at = self.store.now()
        self.store.reviews[review.id] = review
        return review

    async def delete(self, review_id: UUID) -> None:
        self.store.reviews.pop(review_id, None)

    async def list_by_movie(self, movie_id: UUID, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        items = [r for r in self.store.reviews.values() if r.movie_id == movie_id and _matches(r, filters)]
        return paginate(_sorted(items, filters.sort), limit, offset)

    async def list_by_user(self, user_id: UUID, filters: ReviewFilters, limit: int, offset: int) -> List[Review]:
        items = [r for r in self.store.reviews.values() if r.user_id == user_id and _matches(r, filters)]
        return paginate(_sorted(items, filters.sort), limit, offset)

    async def count_by_movie(self, movie_id: UUID, filters: Optional[ReviewFilters] = None) -> int:
        return sum(1 for r in self.store.reviews.values() if r.movie_id == movie_id and _matches(r, filters))

    async def count_by_user(self, user_id: UUID, filters: Optional[ReviewFilters] = None) -> int:
        return sum(1 for r in self.store.reviews.values() if r.user_id == user_id and _matches(r, filters))

    async def count(self, since: Optional[datetime] = None) -> int:
        return sum(1 for r in self.store.reviews.values() if since is None or r.created_at >= since)

    async def average_rating_by_user(self, user_id: UUID) -> float:
        ratings = [r.rating for r in self.store.reviews.values() if r.user_id == user_id]
        return sum(ratings) / len(ratings) if ratings else 0.0

    async def favorite_genre_by_user(self, user_id: UUID) -> Optional[Genre]:
        counts: dict = {}
        by_id: dict = {}
        for review in self.store.reviews.values():
            if review.user_id != user_id:
                continue
            movie = self.store.movies.get(review.movie_id)
            for genre in (movie.genres if movie is not None else []):
                counts[genre.id] = counts.get(genre.id, 0) + 1
                by_id[genre.id] = genre
        if not counts:
            return None
        best = min(counts, key=lambda gid: (-counts[gid], by_id[gid].name))
        return by_id[best]


__all__ = [
    "ReviewRepositoryProtocol",
    "SqlAlchemyReviewRepository",
    "MemoryReviewRepository",
]
