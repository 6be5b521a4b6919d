from __future__ import annotations

"""
Movie store and the `MovieRater` capability.

`update_average_rating(movie_id)` recomputes `COALESCE(AVG(rating), 0)` over
the movie's current reviews and persists it. It reads ground truth every time,
so calling it twice in a row leaves the same value.

`SessionMovieRater` wraps the SQL implementation for callers that live
outside a request (the review worker): each call opens its own short-lived
session from an `async_sessionmaker`.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import Genre, Movie, Review, movie_genres
from app.repositories.memory import MemoryStore, paginate
from app.schemas.movie import MovieFilters

logger = logging.getLogger(__name__)


class MovieRater:
    """Capability consumed by the review pipeline."""

    async def update_average_rating(self, movie_id: UUID) -> None:
        raise NotImplementedError


class MovieRepositoryProtocol(MovieRater):
    async def get_by_id(self, movie_id: UUID) -> Optional[Movie]:
        raise NotImplementedError

    async def list(self, filters: MovieFilters, limit: int, offset: int) -> Tuple[List[Movie], int]:
        raise NotImplementedError

    async def create(self, movie: Movie, genres: Sequence[Genre]) -> Movie:
        raise NotImplementedError

    async def update(self, movie: Movie, genres: Optional[Sequence[Genre]] = None) -> Movie:
        raise NotImplementedError

    async def delete(self, movie_id: UUID) -> None:
        raise NotImplementedError

    async def count(self, since: Optional[datetime] = None) -> int:
        raise NotImplementedError

    async def mean_average_rating(self) -> float:
        raise NotImplementedError


def _round_rating(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ──────────────────────────────────────────────────────────────
# 🐘 SQLAlchemy
# ──────────────────────────────────────────────────────────────
def _apply_filters(stmt: Select, filters: MovieFilters) -> Select:
    if filters.genre_id is not None:
        stmt = stmt.where(
            select(movie_genres.c.movie_id)
            .where(movie_genres.c.movie_id == Movie.id, movie_genres.c.genre_id == filters.genre_id)
            .exists()
        )
    if filters.genre:
        stmt = stmt.where(
            select(movie_genres.c.movie_id)
            .join(Genre, Genre.id == movie_genres.c.genre_id)
            .where(movie_genres.c.movie_id == Movie.id, Genre.name.ilike(f"%{filters.genre}%"))
            .exists()
        )
    if filters.year:
        stmt = stmt.where(Movie.release_year == filters.year)
    if filters.min_rating:
        stmt = stmt.where(Movie.average_rating >= filters.min_rating)
    if filters.search:
        pattern = f"%{filters.search}%"
        stmt = stmt.where(or_(Movie.title.ilike(pattern), Movie.description.ilike(pattern)))
    return stmt


class SqlAlchemyMovieRepository(MovieRepositoryProtocol):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, movie_id: UUID) -> Optional[Movie]:
        return await self.session.get(Movie, movie_id)

    async def list(self, filters: MovieFilters, limit: int, offset: int) -> Tuple[List[Movie], int]:
        total = (await self.session.execute(_apply_filters(select(func.count(Movie.id)), filters))).scalar_one()
        stmt = _apply_filters(select(Movie), filters).order_by(Movie.created_at.desc()).limit(limit).offset(offset)
        items = list((await self.session.execute(stmt)).scalars().all())
        return items, int(total)

    async def create(self, movie: Movie, genres: Sequence[Genre]) -> Movie:
        movie.genres = list(genres)
        self.session.add(movie)
        await self.session.commit()
        await self.session.refresh(movie)
        return movie

    async def update(self, movie: Movie, genres: Optional[Sequence[Genre]] = None) -> Movie:
        if genres is not None:
            movie.genres = list(genres)
        self.session.add(movie)
        await self.session.commit()
        await self.session.refresh(movie)
        return movie

    async def delete(self, movie_id: UUID) -> None:
        await self.session.execute(delete(Movie).where(Movie.id == movie_id))
        await self.session.commit()

    async def count(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count(Movie.id))
        if since is not None:
            stmt = stmt.where(Movie.created_at >= since)
        return int((await self.session.execute(stmt)).scalar_one())

    async def mean_average_rating(self) -> float:
        value = (await self.session.execute(select(func.avg(Movie.average_rating)))).scalar_one_or_none()
        return float(value) if value is not None else 0.0

    async def update_average_rating(self, movie_id: UUID) -> None:
        avg_subq = (
            select(func.coalesce(func.avg(Review.rating), 0))
            .where(Review.movie_id == movie_id)
            .scalar_subquery()
        )
        stmt = (
            update(Movie)
            .where(Movie.id == movie_id)
            .values(average_rating=avg_subq)
            .execution_options(synchronize_session="fetch")
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


class SessionMovieRater(MovieRater):
    """`MovieRater` that opens a fresh session per call (background use)."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self.session_maker = session_maker

    async def update_average_rating(self, movie_id: UUID) -> None:
        async with self.session_maker() as session:
            await SqlAlchemyMovieRepository(session).update_average_rating(movie_id)


# ──────────────────────────────────────────────────────────────
# 🧪 In-memory
# ──────────────────────────────────────────────────────────────
def _matches(movie: Movie, filters: MovieFilters) -> bool:
    genres = movie.genres or []
    if filters.genre_id is not None and all(g.id != filters.genre_id for g in genres):
        return False
    if filters.genre and all(filters.genre.lower() not in g.name.lower() for g in genres):
        return False
    if filters.year and movie.release_year != filters.year:
        return False
    if filters.min_rating and float(movie.average_rating or 0) < filters.min_rating:
        return False
    if filters.search:
        needle = filters.search.lower()
        if needle not in (movie.title or "").lower() and needle not in (movie.description or "").lower():
            return False
    return True


class MemoryMovieRepository(MovieRepositoryProtocol):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    async def get_by_id(self, movie_id: UUID) -> Optional[Movie]:
        return self.store.movies.get(movie_id)

    async def list(self, filters: MovieFilters, limit: int, offset: int) -> Tuple[List[Movie], int]:
        items = [m for m in self.store.movies.values() if _matches(m, filters)]
        items.sort(key=lambda m: m.created_at, reverse=True)
        return paginate(items, limit, offset), len(items)

    async def create(self, movie: Movie, genres: Sequence[Genre]) -> Movie:
        now = self.store.now()
        movie.id = movie.id or uuid4()
        movie.description = movie.description or ""
        movie.average_rating = _round_rating(0)
        movie.genres = list(genres)
        movie.created_at = now
        movie.updated_at = now
        self.store.movies[movie.id] = movie
        return movie

    async def update(self, movie: Movie, genres: Optional[Sequence[Genre]] = None) -> Movie:
        if genres is not None:
            movie.genres = list(genres)
        movie.updated_at = self.store.now()
        self.store.movies[movie.id] = movie
        return movie

    async def delete(self, movie_id: UUID) -> None:
        self.store.movies.pop(movie_id, None)
        # ON DELETE CASCADE (reviews) / SET NULL (audit_logs)
        for review_id in [r.id for r in self.store.reviews.values() if r.movie_id == movie_id]:
            self.store.reviews.pop(review_id, None)
        for entry in self.store.audit_logs:
            if entry.movie_id == movie_id:
                entry.movie_id = None

    async def count(self, since: Optional[datetime] = None) -> int:
        return sum(1 for m in self.store.movies.values() if since is None or m.created_at >= since)

    async def mean_average_rating(self) -> float:
        values = [float(m.average_rating or 0) for m in self.store.movies.values()]
        return sum(values) / len(values) if values else 0.0

    async def update_average_rating(self, movie_id: UUID) -> None:
        movie = self.store.movies.get(movie_id)
        if movie is None:
            return
        ratings = [r.rating for r in self.store.reviews.values() if r.movie_id == movie_id]
        movie.average_rating = _round_rating(sum(ratings) / len(ratings) if ratings else 0)


__all__ = [
    "MovieRater",
    "MovieRepositoryProtocol",
    "SqlAlchemyMovieRepository",
    "SessionMovieRater",
    "MemoryMovieRepository",
]
