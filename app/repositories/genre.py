from __future__ import annotations

"""Genre store: protocol, SQLAlchemy and in-memory implementations."""

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import GenreAlreadyExistsException
from app.db.models import Genre
from app.repositories.memory import MemoryStore


class GenreRepositoryProtocol:
    async def get_by_id(self, genre_id: UUID) -> Optional[Genre]:
        raise NotImplementedError

    async def get_by_name(self, name: str) -> Optional[Genre]:
        raise NotImplementedError

    async def get_many(self, genre_ids: Sequence[UUID]) -> List[Genre]:
        raise NotImplementedError

    async def list(self) -> List[Genre]:
        raise NotImplementedError

    async def create(self, genre: Genre) -> Genre:
        raise NotImplementedError

    async def update(self, genre: Genre) -> Genre:
        raise NotImplementedError

    async def delete(self, genre_id: UUID) -> None:
        raise NotImplementedError

    async def count(self, since: Optional[datetime] = None) -> int:
        raise NotImplementedError


class SqlAlchemyGenreRepository(GenreRepositoryProtocol):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, genre_id: UUID) -> Optional[Genre]:
        return await self.session.get(Genre, genre_id)

    async def get_by_name(self, name: str) -> Optional[Genre]:
        result = await self.session.execute(select(Genre).where(func.lower(Genre.name) == name.lower()))
        return result.scalars().first()

    async def get_many(self, genre_ids: Sequence[UUID]) -> List[Genre]:
        if not genre_ids:
            return []
        result = await self.session.execute(select(Genre).where(Genre.id.in_(list(genre_ids))))
        return list(result.scalars().all())

    async def list(self) -> List[Genre]:
        result = await self.session.execute(select(Genre).order_by(Genre.name))
        return list(result.scalars().all())

    async def _commit(self, genre: Genre) -> Genre:
        self.session.add(genre)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise GenreAlreadyExistsException(name=genre.name) from exc
        await self.session.refresh(genre)
        return genre

    async def create(self, genre: Genre) -> Genre:
        return await self._commit(genre)

    async def update(self, genre: Genre) -> Genre:
        return await self._commit(genre)

    async def delete(self, genre_id: UUID) -> None:
        await self.session.execute(delete(Genre).where(Genre.id == genre_id))
        await self.session.commit()

    async def count(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count(Genre.id))
        if since is not None:
            stmt = stmt.where(Genre.created_at >= since)
        return int((await self.session.execute(stmt)).scalar_one())


class MemoryGenreRepository(GenreRepositoryProtocol):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    async def get_by_id(self, genre_id: UUID) -> Optional[Genre]:
        return self.store.genres.get(genre_id)

    async def get_by_name(self, name: str) -> Optional[Genre]:
        for genre in self.store.genres.values():
            if genre.name.lower() == name.lower():
                return genre
        return None

    async def get_many(self, genre_ids: Sequence[UUID]) -> List[Genre]:
        return [self.store.genres[g] for g in dict.fromkeys(genre_ids) if g in self.store.genres]

    async def list(self) -> List[Genre]:
        return sorted(self.store.genres.values(), key=lambda g: g.name)

    async def create(self, genre: Genre) -> Genre:
        if await self.get_by_name(genre.name) is not None:
            raise GenreAlreadyExistsException(name=genre.name)
        genre.id = genre.id or uuid4()
        genre.created_at = self.store.now()
        self.store.genres[genre.id] = genre
        return genre

    async def update(self, genre: Genre) -> Genre:
        for other in self.store.genres.values():
            if other.id != genre.id and other.name.lower() == genre.name.lower():
                raise GenreAlreadyExistsException(name=genre.name)
        self.store.genres[genre.id] = genre
        return genre

    async def delete(self, genre_id: UUID) -> None:
        self.store.genres.pop(genre_id, None)
        for movie in self.store.movies.values():
            movie.genres = [g for g in (movie.genres or []) if g.id != genre_id]

    async def count(self, since: Optional[datetime] = None) -> int:
        return sum(1 for g in self.store.genres.values() if since is None or g.created_at >= since)


__all__ = ["GenreRepositoryProtocol", "SqlAlchemyGenreRepository", "MemoryGenreRepository"]
