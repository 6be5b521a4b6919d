# app/services/genre_service.py
from __future__ import annotations

"""Genre CRUD. Names are unique case-insensitively."""

import logging
from typing import List
from uuid import UUID

from app.core.exceptions import GenreAlreadyExistsException, GenreNotFoundException
from app.db.models import Genre
from app.repositories.genre import GenreRepositoryProtocol
from app.schemas.genre import GenreIn

logger = logging.getLogger(__name__)


class GenreService:
    def __init__(self, genres: GenreRepositoryProtocol) -> None:
        self.genres = genres

    async def list(self) -> List[Genre]:
        return await self.genres.list()

    async def get(self, genre_id: UUID) -> Genre:
        genre = await self.genres.get_by_id(genre_id)
        if genre is None:
            raise GenreNotFoundException(genre_id=genre_id)
        return genre

    async def create(self, payload: GenreIn) -> Genre:
        if await self.genres.get_by_name(payload.name) is not None:
            raise GenreAlreadyExistsException(name=payload.name)
        genre = await self.genres.create(Genre(name=payload.name))
        logger.info("Genre %s created (%s)", genre.id, genre.name)
        return genre

    async def update(self, genre_id: UUID, payload: GenreIn) -> Genre:
        genre = await self.get(genre_id)
        clash = await self.genres.get_by_name(payload.name)
        if clash is not None and clash.id != genre_id:
            raise GenreAlreadyExistsException(name=payload.name)
        genre.name = payload.name
        return await self.genres.update(genre)

    async def delete(self, genre_id: UUID) -> None:
        await self.get(genre_id)
        await self.genres.delete(genre_id)
        logger.info("Genre %s deleted", genre_id)


__all__ = ["GenreService"]
