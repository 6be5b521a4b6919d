# tests/fixtures/sql.py
"""
SQL fixtures (async SQLAlchemy, real sessions):
- `TEST_DATABASE_URL` (e.g. postgresql+asyncpg://…) when set; otherwise a
  throwaway SQLite file per test through aiosqlite
- NullPool so every session gets its own short-lived connection
- `sql_session_maker` mirrors `app.db.session.async_session_maker`
"""

from __future__ import annotations

import os
from typing import AsyncGenerator, Sequence
from uuid import uuid4

import pytest
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.db.base import Base
from app.db.models import Genre, Movie, User

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def sql_session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'reelreviews.db'}"
    engine = create_async_engine(url, poolclass=NullPool)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


# ──────────────────────────────────────────────────────────────
# 🌱 Seed helpers (commit through their own session)
# ──────────────────────────────────────────────────────────────
async def seed_user(session_maker: async_sessionmaker) -> User:
    suffix = uuid4().hex[:8]
    user = User(email=f"sql_{suffix}@example.com", username=f"sql_{suffix}", hashed_password="x")
    async with session_maker() as session:
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user


async def seed_movie(session_maker: async_sessionmaker, title: str = "Cold Open", genre_names: Sequence[str] = ("Drama",)) -> Movie:
    async with session_maker() as session:
        genres = []
        for name in genre_names:
            genre = (await session.execute(select(Genre).where(Genre.name == name))).scalars().first()
            genres.append(genre or Genre(name=name))
        movie = Movie(title=title, description="", genres=genres)
        session.add(movie)
        await session.commit()
        await session.refresh(movie)
    return movie


async def stored_average(session_maker: async_sessionmaker, movie_id) -> float:
    async with session_maker() as session:
        movie = await session.get(Movie, movie_id)
        return float(movie.average_rating)
