# app/core/dependencies.py
from __future__ import annotations

"""
Request dependencies — ReelReviews
==================================

Wires repositories and services per request.

Backend selection
-----------------
- When the application carries a `MemoryStore` (`app.state.memory_store`,
  set for `REPOSITORY_BACKEND=memory` and in tests), every repository is the
  in-memory implementation over that store.
- Otherwise one `AsyncSession` is opened per request (FastAPI caches the
  dependency) and shared by all SQLAlchemy repositories.

The review service receives the application's `ReviewEventChannel` from
`app.state.review_events`.
"""

from typing import AsyncGenerator, Optional
import logging

from fastapi import Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_async_db
from app.repositories.audit import AuditRepositoryProtocol, MemoryAuditRepository, SqlAlchemyAuditRepository
from app.repositories.genre import GenreRepositoryProtocol, MemoryGenreRepository, SqlAlchemyGenreRepository
from app.repositories.memory import MemoryStore
from app.repositories.movie import MemoryMovieRepository, MovieRepositoryProtocol, SqlAlchemyMovieRepository
from app.repositories.review import MemoryReviewRepository, ReviewRepositoryProtocol, SqlAlchemyReviewRepository
from app.repositories.user import MemoryUserRepository, SqlAlchemyUserRepository, UserRepositoryProtocol
from app.schemas.enums import ReviewSort
from app.schemas.review import ReviewFilters
from app.services.admin_service import AdminService
from app.services.genre_service import GenreService
from app.services.movie_service import MovieService
from app.services.review_events import ReviewEventChannel
from app.services.review_service import ReviewService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────
# 🗄️ Storage
# ──────────────────────────────────────────────────────────────
def _memory_store(request: Request) -> Optional[MemoryStore]:
    return getattr(request.app.state, "memory_store", None)


async def get_session(request: Request) -> AsyncGenerator[Optional[AsyncSession], None]:
    """Yield a request-scoped session, or `None` for the in-memory backend."""
    if _memory_store(request) is not None:
        yield None
        return
    async for session in get_async_db():
        yield session


# ──────────────────────────────────────────────────────────────
# 📚 Repositories
# ──────────────────────────────────────────────────────────────
def get_user_repository(
    request: Request, session: Optional[AsyncSession] = Depends(get_session)
) -> UserRepositoryProtocol:
    store = _memory_store(request)
    return MemoryUserRepository(store) if store is not None else SqlAlchemyUserRepository(session)


def get_genre_repository(
    request: Request, session: Optional[AsyncSession] = Depends(get_session)
) -> GenreRepositoryProtocol:
    store = _memory_store(request)
    return MemoryGenreRepository(store) if store is not None else SqlAlchemyGenreRepository(session)


def get_movie_repository(
    request: Request, session: Optional[AsyncSession] = Depends(get_session)
) -> MovieRepositoryProtocol:
    store = _memory_store(request)
    return MemoryMovieRepository(store) if store is not None else SqlAlchemyMovieRepository(session)


def get_review_repository(
    request: Request, session: Optional[AsyncSession] = Depends(get_session)
) -> ReviewRepositoryProtocol:
    store = _memory_store(request)
    return MemoryReviewRepository(store) if store is not None else SqlAlchemyReviewRepository(session)


def get_audit_repository(
    request: Request, session: Optional[AsyncSession] = Depends(get_session)
) -> AuditRepositoryProtocol:
    store = _memory_store(request)
    return MemoryAuditRepository(store) if store is not None else SqlAlchemyAuditRepository(session)


def get_review_events(request: Request) -> Optional[ReviewEventChannel]:
    return getattr(request.app.state, "review_events", None)


# ──────────────────────────────────────────────────────────────
# 🔎 Query parameters
# ──────────────────────────────────────────────────────────────
def get_review_filters(
    min_rating: Optional[int] = Query(None, ge=1, le=10),
    max_rating: Optional[int] = Query(None, ge=1, le=10),
    sort: ReviewSort = Query(ReviewSort.CREATED_DESC),
) -> ReviewFilters:
    """Review listing filters; an inverted rating range is a 422 like any other bad query."""
    try:
        return ReviewFilters(min_rating=min_rating, max_rating=max_rating, sort=sort)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False, include_input=False)) from exc


# ──────────────────────────────────────────────────────────────
# 🧩 Services
# ──────────────────────────────────────────────────────────────
def get_review_service(
    reviews: ReviewRepositoryProtocol = Depends(get_review_repository),
    movies: MovieRepositoryProtocol = Depends(get_movie_repository),
    events: Optional[ReviewEventChannel] = Depends(get_review_events),
) -> ReviewService:
    return ReviewService(reviews, movies, events)


def get_movie_service(
    movies: MovieRepositoryProtocol = Depends(get_movie_repository),
    genres: GenreRepositoryProtocol = Depends(get_genre_repository),
) -> MovieService:
    return MovieService(movies, genres)


def get_genre_service(genres: GenreRepositoryProtocol = Depends(get_genre_repository)) -> GenreService:
    return GenreService(genres)


def get_user_service(
    users: UserRepositoryProtocol = Depends(get_user_repository),
    reviews: ReviewRepositoryProtocol = Depends(get_review_repository),
    movies: MovieRepositoryProtocol = Depends(get_movie_repository),
) -> UserService:
    return UserService(users, reviews, movies)


def get_admin_service(
    users: UserRepositoryProtocol = Depends(get_user_repository),
    movies: MovieRepositoryProtocol = Depends(get_movie_repository),
    reviews: ReviewRepositoryProtocol = Depends(get_review_repository),
    genres: GenreRepositoryProtocol = Depends(get_genre_repository),
    audit: AuditRepositoryProtocol = Depends(get_audit_repository),
) -> AdminService:
    return AdminService(users, movies, reviews, genres, audit)


__all__ = [
    "get_session",
    "get_user_repository",
    "get_genre_repository",
    "get_movie_repository",
    "get_review_repository",
    "get_audit_repository",
    "get_review_events",
    "get_review_filters",
    "get_review_service",
    "get_movie_service",
    "get_genre_service",
    "get_user_service",
    "get_admin_service",
]
