# app/services/movie_service.py
from __future__ import annotations

"""
ReelReviews — Movie catalog service
===================================

Admin-managed movie CRUD plus public listing. A movie always belongs to at
least one genre; every requested genre id must exist.

`average_rating` is never written here: it is owned by the review pipeline
(`MovieRepositoryProtocol.update_average_rating`).
"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from app.core.exceptions import (
    GenreNotFoundException,
    MovieNotFoundException,
    NoGenresProvidedException,
)
from app.db.models import Genre, Movie
from app.repositories.genre import GenreRepositoryProtocol
from app.repositories.movie import MovieRepositoryProtocol
from app.schemas.common import normalize_page
from app.schemas.movie import MovieCreate, MovieFilters, MovieUpdate

logger = logging.getLogger(__name__)


class MovieService:
    def __init__(self, movies: MovieRepositoryProtocol, genres: GenreRepositoryProtocol) -> None:
        self.movies = movies
        self.genres = genres

    async def get(self, movie_id: UUID) -> Movie:
        movie = await self.movies.get_by_id(movie_id)
        if movie is None:
            raise MovieNotFoundException(movie_id=movie_id)
        return movie

    async def list(
        self,
        filters: Optional[MovieFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Movie], int, int, int]:
        page, limit = normalize_page(page, limit)
        items, total = await self.movies.list(filters or MovieFilters(), limit, (page - 1) * limit)
        return items, total, page, limit

    async def _resolve_genres(self, genre_ids: Sequence[UUID]) -> List[Genre]:
        if not genre_ids:
            raise NoGenresProvidedException()
        wanted = list(dict.fromkeys(genre_ids))
        found = await self.genres.get_many(wanted)
        if len(found) != len(wanted):
            known = {g.id for g in found}
            missing = next(g for g in wanted if g not in known)
            raise GenreNotFoundException(genre_id=missing)
        return found

    async def create(self, payload: MovieCreate) -> Movie:
        genres = await self._resolve_genres(payload.genre_ids)
        movie = Movie(
            title=payload.title,
            description=payload.description,
            release_year=payload.release_year,
            director=payload.director,
            duration_minutes=payload.duration_minutes,
        )
        movie = await self.movies.create(movie, genres)
        logger.info("Movie %s created (%s)", movie.id, movie.title)
        return movie

    async def update(self, movie_id: UUID, payload: MovieUpdate) -> Movie:
        movie = await self.get(movie_id)
        genres = None
        if payload.genre_ids is not None:
            genres = await self._resolve_genres(payload.genre_ids)

        for field, value in payload.model_dump(exclude_unset=True, exclude={"genre_ids"}).items():
            if value is not None:
                setattr(movie, field, value)

        return await self.movies.update(movie, genres)

    async def delete(self, movie_id: UUID) -> None:
        await self.get(movie_id)
        await self.movies.delete(movie_id)
        logger.info("Movie %s deleted", movie_id)


__all__ = ["MovieService"]
