# tests/fixtures/catalog.py

from __future__ import annotations

from typing import Awaitable, Callable, Sequence

import pytest

from app.db.models import Genre, Movie
from app.repositories.genre import MemoryGenreRepository
from app.repositories.memory import MemoryStore
from app.repositories.movie import MemoryMovieRepository


@pytest.fixture
def create_genre(store: MemoryStore) -> Callable[..., Awaitable[Genre]]:
    async def _create(name: str = "Drama") -> Genre:
        return await MemoryGenreRepository(store).create(Genre(name=name))

    return _create


@pytest.fixture
def create_movie(store: MemoryStore, create_genre) -> Callable[..., Awaitable[Movie]]:
    async def _create(
        title: str = "The Long Take",
        *,
        genres: Sequence[Genre] | None = None,
        release_year: int | None = 2001,
        description: str = "",
    ) -> Movie:
        if genres is None:
            genres = [await create_genre(f"Genre {len(store.genres) + 1}")]
        movie = Movie(title=title, release_year=release_year, description=description)
        return await MemoryMovieRepository(store).create(movie, genres)

    return _create


@pytest.fixture
async def movie(create_movie) -> Movie:
    return await create_movie()
