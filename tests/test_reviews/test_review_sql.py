# tests/test_reviews/test_review_sql.py
from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.core.exceptions import ReviewAlreadyExistsException
from app.db.models import AuditLog, Movie, Review
from app.repositories.audit import SessionAuditWriter
from app.repositories.movie import SessionMovieRater, SqlAlchemyMovieRepository
from app.repositories.review import SqlAlchemyReviewRepository
from app.schemas.audit import AuditLogEntry
from app.schemas.enums import ReviewEventType, ReviewSort
from app.schemas.review import ReviewCreate, ReviewFilters, ReviewUpdate
from app.services.review_events import ReviewEvent, ReviewEventChannel
from app.services.review_service import ReviewService
from app.services.review_worker import ReviewEventWorker
from tests.fixtures.sql import seed_movie, seed_user, stored_average


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

class FlakyMovieRepository(SqlAlchemyMovieRepository):
    """Writes, then fails before commit and rolls back the shared session."""

    async def update_average_rating(self, movie_id):
        try:
            await self.session.execute(update(Movie).where(Movie.id == movie_id).values(average_rating=9))
            raise OperationalError("UPDATE movies", {}, Exception("database is locked"))
        except Exception:
            await self.session.rollback()
            raise


async def add_review(session_maker, movie, user, rating: int) -> Review:
    async with session_maker() as session:
        return await SqlAlchemyReviewRepository(session).create(
            Review(movie_id=movie.id, user_id=user.id, rating=rating, title=f"{rating}/10", content="...")
        )


async def fetch_review(session_maker, review_id):
    async with session_maker() as session:
        return await session.get(Review, review_id)


# ─────────────────────────────────────────────────────────────
# Failed inline recompute on the request session
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_create_survives_recompute_rollback_on_shared_session(sql_session_maker):
    user = await seed_user(sql_session_maker)
    movie = await seed_movie(sql_session_maker)
    channel = ReviewEventChannel(10)

    async with sql_session_maker() as session:
        service = ReviewService(SqlAlchemyReviewRepository(session), FlakyMovieRepository(session), channel)
        review = await service.create(movie.id, user.id, ReviewCreate(rating=7, title="Tense", content="Holds up."))

        assert review.id is not None
        assert review.rating == 7
        assert review.created_at is not None

    stored = await fetch_review(sql_session_maker, review.id)
    assert stored is not None and stored.user_id == user.id
    assert await stored_average(sql_session_maker, movie.id) == 0

    published = channel.get_nowait()
    assert published.type == ReviewEventType.CREATED
    assert published.review_id == review.id


@pytest.mark.anyio
async def test_update_survives_recompute_rollback_on_shared_session(sql_session_maker):
    user = await seed_user(sql_session_maker)
    movie = await seed_movie(sql_session_maker)
    original = await add_review(sql_session_maker, movie, user, 4)
    channel = ReviewEventChannel(10)

    async with sql_session_maker() as session:
        service = ReviewService(SqlAlchemyReviewRepository(session), FlakyMovieRepository(session), channel)
        review = await service.update(original.id, user.id, ReviewUpdate(rating=9, title="", content=""))

        assert review.id == original.id
        assert (review.rating, review.title) == (9, "4/10")

    assert (await fetch_review(sql_session_maker, original.id)).rating == 9

    published = channel.get_nowait()
    assert published.type == ReviewEventType.UPDATED
    assert published.review_id == original.id
    assert published.movie_id == movie.id


# ─────────────────────────────────────────────────────────────
# Uniqueness at the constraint
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_duplicate_insert_maps_integrity_error_and_keeps_session_usable(sql_session_maker):
    user = await seed_user(sql_session_maker)
    movie = await seed_movie(sql_session_maker)

    async with sql_session_maker() as session:
        repo = SqlAlchemyReviewRepository(session)
        first = await repo.create(Review(movie_id=movie.id, user_id=user.id, rating=5, title="First", content="a"))

        with pytest.raises(ReviewAlreadyExistsException) as exc:
            await repo.create(Review(movie_id=movie.id, user_id=user.id, rating=9, title="Again", content="b"))
        assert exc.value.code == 409

        kept = await repo.get_by_movie_and_user(movie.id, user.id)
        assert kept.id == first.id
        assert kept.rating == 5
        assert await repo.count_by_movie(movie.id) == 1


# ─────────────────────────────────────────────────────────────
# Average recompute
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_recompute_is_idempotent_and_falls_back_to_zero(sql_session_maker):
    movie = await seed_movie(sql_session_maker)
    reviews = [await add_review(sql_session_maker, movie, await seed_user(sql_session_maker), r) for r in (7, 8, 10)]

    async with sql_session_maker() as session:
        movies = SqlAlchemyMovieRepository(session)
        await movies.update_average_rating(movie.id)
        first = await stored_average(sql_session_maker, movie.id)
        await movies.update_average_rating(movie.id)
        second = await stored_average(sql_session_maker, movie.id)

    assert first == pytest.approx(8.33, abs=0.01)
    assert second == first

    async with sql_session_maker() as session:
        repo = SqlAlchemyReviewRepository(session)
        for review in reviews:
            await repo.delete(review.id)
        await SqlAlchemyMovieRepository(session).update_average_rating(movie.id)

    assert await stored_average(sql_session_maker, movie.id) == 0


@pytest.mark.anyio
async def test_recompute_for_unknown_movie_touches_nothing(sql_session_maker):
    movie = await seed_movie(sql_session_maker)
    await add_review(sql_session_maker, movie, await seed_user(sql_session_maker), 6)

    async with sql_session_maker() as session:
        await SqlAlchemyMovieRepository(session).update_average_rating(uuid4())

    assert await stored_average(sql_session_maker, movie.id) == 0


# ─────────────────────────────────────────────────────────────
# Worker with session-per-call writers
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_worker_persists_average_and_audit_row(sql_session_maker):
    user = await seed_user(sql_session_maker)
    movie = await seed_movie(sql_session_maker)
    review = await add_review(sql_session_maker, movie, user, 6)

    channel = ReviewEventChannel(10)
    worker = ReviewEventWorker(channel, SessionMovieRater(sql_session_maker), SessionAuditWriter(sql_session_maker))
    channel.publish(ReviewEvent(type=ReviewEventType.CREATED, movie_id=movie.id, user_id=user.id, review_id=review.id))

    stop = asyncio.Event()
    worker.start(stop)
    await asyncio.wait_for(channel.join(), timeout=5)
    await worker.stop()

    assert await stored_average(sql_session_maker, movie.id) == 6

    async with sql_session_maker() as session:
        rows = (await session.execute(select(AuditLog))).scalars().all()
    assert len(rows) == 1
    assert rows[0].event == "review_created"
    assert (rows[0].user_id, rows[0].movie_id, rows[0].review_id) == (user.id, movie.id, review.id)
    assert rows[0].details == ""


@pytest.mark.anyio
async def test_session_audit_writer_keeps_dangling_review_reference(sql_session_maker):
    user = await seed_user(sql_session_maker)
    movie = await seed_movie(sql_session_maker)
    review = await add_review(sql_session_maker, movie, user, 3)

    async with sql_session_maker() as session:
        await SqlAlchemyReviewRepository(session).delete(review.id)

    row = await SessionAuditWriter(sql_session_maker).insert(
        AuditLogEntry(user_id=user.id, movie_id=movie.id, review_id=review.id, event="review_deleted")
    )
    assert row.id is not None
    assert row.created_at is not None
    assert row.review_id == review.id


# ─────────────────────────────────────────────────────────────
# Listing filters, sort and counts
# ─────────────────────────────────────────────────────────────

@pytest.fixture
async def rated_movie(sql_session_maker):
    movie = await seed_movie(sql_session_maker, genre_names=("Noir",))
    for rating in (3, 6, 8, 10):
        await add_review(sql_session_maker, movie, await seed_user(sql_session_maker), rating)
    return movie


@pytest.mark.anyio
@pytest.mark.parametrize(
    "filters, expected",
    [
        (ReviewFilters(min_rating=6, sort=ReviewSort.RATING_ASC), [6, 8, 10]),
        (ReviewFilters(max_rating=8, sort=ReviewSort.RATING_DESC), [8, 6, 3]),
        (ReviewFilters(min_rating=6, max_rating=8, sort=ReviewSort.RATING_DESC), [8, 6]),
        (ReviewFilters(min_rating=8, max_rating=8), [8]),
    ],
)
async def test_list_by_movie_filters_and_sorts_in_sql(sql_session_maker, rated_movie, filters, expected):
    async with sql_session_maker() as session:
        repo = SqlAlchemyReviewRepository(session)
        items = await repo.list_by_movie(rated_movie.id, filters, limit=10, offset=0)
        total = await repo.count_by_movie(rated_movie.id, filters)

    assert [r.rating for r in items] == expected
    assert total == len(expected)


@pytest.mark.anyio
async def test_list_by_movie_pages_after_ordering(sql_session_maker, rated_movie):
    async with sql_session_maker() as session:
        repo = SqlAlchemyReviewRepository(session)
        page = await repo.list_by_movie(rated_movie.id, ReviewFilters(sort=ReviewSort.RATING_DESC), limit=2, offset=1)
        assert await repo.count_by_movie(rated_movie.id) == 4

    assert [r.rating for r in page] == [8, 6]


@pytest.mark.anyio
async def test_user_aggregates_in_sql(sql_session_maker):
    user = await seed_user(sql_session_maker)
    noir = await seed_movie(sql_session_maker, title="Night", genre_names=("Noir",))
    drama = await seed_movie(sql_session_maker, title="Day", genre_names=("Drama",))
    second_noir = await seed_movie(sql_session_maker, title="Dusk", genre_names=("Noir",))
    for movie, rating in ((noir, 4), (drama, 9), (second_noir, 8)):
        await add_review(sql_session_maker, movie, user, rating)

    async with sql_session_maker() as session:
        repo = SqlAlchemyReviewRepository(session)
        assert await repo.count_by_user(user.id) == 3
        assert await repo.count_by_user(user.id, ReviewFilters(min_rating=8)) == 2
        assert await repo.average_rating_by_user(user.id) == pytest.approx(7.0)
        favorite = await repo.favorite_genre_by_user(user.id)
        assert favorite.name == "Noir"
        listed = await repo.list_by_user(user.id, ReviewFilters(sort=ReviewSort.RATING_ASC), limit=10, offset=0)

    assert [r.rating for r in listed] == [4, 8, 9]
