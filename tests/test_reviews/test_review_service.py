# tests/test_reviews/test_review_service.py
from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.core.exceptions import (
    ForbiddenException,
    MovieNotFoundException,
    ReviewAlreadyExistsException,
    ReviewNotFoundException,
)
from app.repositories.movie import MemoryMovieRepository
from app.repositories.review import MemoryReviewRepository
from app.schemas.enums import ReviewEventType, ReviewSort
from app.schemas.review import ReviewCreate, ReviewFilters, ReviewUpdate
from app.services.review_events import ReviewEventChannel
from app.services.review_service import ReviewService


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

class FailingMovieRepository(MemoryMovieRepository):
    async def update_average_rating(self, movie_id):
        raise RuntimeError("db down")


def make_service(store, *, channel=None, movies=None) -> ReviewService:
    return ReviewService(
        MemoryReviewRepository(store),
        movies or MemoryMovieRepository(store),
        channel,
    )


def payload(rating: int = 8, title: str = "Great", content: str = "Loved it") -> ReviewCreate:
    return ReviewCreate(rating=rating, title=title, content=content)


def drain(channel: ReviewEventChannel) -> list:
    events = []
    while not channel.empty():
        events.append(channel.get_nowait())
        channel.task_done()
    return events


# ─────────────────────────────────────────────────────────────
# Create
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_create_persists_recomputes_and_emits(store, movie, create_test_user):
    user = await create_test_user()
    channel = ReviewEventChannel(10)
    service = make_service(store, channel=channel)

    review = await service.create(movie.id, user.id, payload(rating=8))

    assert store.reviews[review.id].rating == 8
    assert movie.average_rating == Decimal("8.00")
    events = drain(channel)
    assert len(events) == 1
    assert events[0].type == ReviewEventType.CREATED
    assert events[0].review_id == review.id
    assert events[0].movie_id == movie.id
    assert events[0].user_id == user.id


@pytest.mark.anyio
async def test_second_review_by_same_user_conflicts(store, movie, create_test_user):
    user = await create_test_user()
    service = make_service(store)
    await service.create(movie.id, user.id, payload())

    with pytest.raises(ReviewAlreadyExistsException) as exc:
        await service.create(movie.id, user.id, payload(rating=3))

    assert exc.value.status_code == 409
    assert len(store.reviews) == 1


@pytest.mark.anyio
async def test_create_for_unknown_movie_persists_nothing(store, create_test_user):
    user = await create_test_user()
    channel = ReviewEventChannel(10)
    service = make_service(store, channel=channel)

    with pytest.raises(MovieNotFoundException):
        await service.create(uuid4(), user.id, payload())

    assert store.reviews == {}
    assert channel.empty()


@pytest.mark.anyio
async def test_create_succeeds_when_recompute_fails(store, movie, create_test_user):
    user = await create_test_user()
    service = make_service(store, movies=FailingMovieRepository(store))

    review = await service.create(movie.id, user.id, payload(rating=9))

    assert review.id in store.reviews
    assert movie.average_rating == Decimal("0.00")


@pytest.mark.anyio
async def test_create_succeeds_when_channel_is_full(store, create_movie, create_test_user):
    user = await create_test_user()
    first, second = await create_movie("One"), await create_movie("Two")
    channel = ReviewEventChannel(1)
    service = make_service(store, channel=channel)

    await service.create(first.id, user.id, payload())
    review = await service.create(second.id, user.id, payload())

    assert review.id in store.reviews
    assert channel.qsize() == 1
    assert channel.dropped == 1


# ─────────────────────────────────────────────────────────────
# Update
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_non_author_update_is_forbidden_and_review_unchanged(store, movie, create_test_user):
    author, intruder = await create_test_user(), await create_test_user()
    channel = ReviewEventChannel(10)
    service = make_service(store, channel=channel)
    review = await service.create(movie.id, author.id, payload(rating=6, title="Mine"))
    drain(channel)

    with pytest.raises(ForbiddenException):
        await service.update(review.id, intruder.id, ReviewUpdate(rating=1, title="Hacked"))

    stored = store.reviews[review.id]
    assert (stored.rating, stored.title) == (6, "Mine")
    assert channel.empty()


@pytest.mark.anyio
async def test_zero_values_leave_fields_unchanged(store, movie, create_test_user):
    user = await create_test_user()
    service = make_service(store)
    review = await service.create(movie.id, user.id, payload(rating=7, title="T", content="C"))

    updated = await service.update(review.id, user.id, ReviewUpdate(rating=0, title="", content="New body"))

    assert (updated.rating, updated.title, updated.content) == (7, "T", "New body")


@pytest.mark.anyio
async def test_update_recomputes_average_and_emits_updated(store, movie, create_test_user):
    user = await create_test_user()
    channel = ReviewEventChannel(10)
    service = make_service(store, channel=channel)
    review = await service.create(movie.id, user.id, payload(rating=4))
    drain(channel)

    await service.update(review.id, user.id, ReviewUpdate(rating=10))

    assert movie.average_rating == Decimal("10.00")
    (event,) = drain(channel)
    assert event.type == ReviewEventType.UPDATED
    assert event.review_id == review.id


@pytest.mark.anyio
async def test_update_unknown_review_is_not_found(store, create_test_user):
    user = await create_test_user()
    with pytest.raises(ReviewNotFoundException):
        await make_service(store).update(uuid4(), user.id, ReviewUpdate(rating=5))


# ─────────────────────────────────────────────────────────────
# Delete
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_delete_by_stranger_is_forbidden(store, movie, create_test_user):
    author, stranger = await create_test_user(), await create_test_user()
    service = make_service(store)
    review = await service.create(movie.id, author.id, payload())

    with pytest.raises(ForbiddenException):
        await service.delete(review.id, stranger.id, is_admin=False)

    assert review.id in store.reviews


@pytest.mark.anyio
async def test_admin_delete_emits_event_with_author_id(store, movie, create_test_user):
    author, admin = await create_test_user(), await create_test_user()
    channel = ReviewEventChannel(10)
    service = make_service(store, channel=channel)
    review = await service.create(movie.id, author.id, payload(rating=5))
    drain(channel)

    await service.delete(review.id, admin.id, is_admin=True)

    assert review.id not in store.reviews
    assert movie.average_rating == Decimal("0.00")
    (event,) = drain(channel)
    assert event.type == ReviewEventType.DELETED
    assert (event.review_id, event.movie_id, event.user_id) == (review.id, movie.id, author.id)


@pytest.mark.anyio
async def test_author_can_delete_own_review(store, movie, create_test_user):
    author = await create_test_user()
    service = make_service(store)
    review = await service.create(movie.id, author.id, payload())

    await service.delete(review.id, author.id)

    assert store.reviews == {}


# ─────────────────────────────────────────────────────────────
# Recompute & listing
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_recompute_is_idempotent(store, movie, create_test_user):
    service = make_service(store)
    for rating in (7, 8, 10):
        user = await create_test_user()
        await service.create(movie.id, user.id, payload(rating=rating))

    movies = MemoryMovieRepository(store)
    await movies.update_average_rating(movie.id)
    first = movie.average_rating
    await movies.update_average_rating(movie.id)

    assert first == movie.average_rating == Decimal("8.33")


@pytest.mark.anyio
async def test_list_by_movie_filters_sorts_and_paginates(store, movie, create_test_user):
    service = make_service(store)
    for rating in (2, 9, 5, 7):
        user = await create_test_user()
        await service.create(movie.id, user.id, payload(rating=rating))

    filters = ReviewFilters(min_rating=5, sort=ReviewSort.RATING_DESC)
    items, total, page, limit = await service.list_by_movie(movie.id, filters, page=1, limit=2)

    assert total == 3
    assert (page, limit) == (1, 2)
    assert [r.rating for r in items] == [9, 7]


@pytest.mark.anyio
async def test_list_normalizes_bad_pagination(store, movie):
    _, total, page, limit = await make_service(store).list_by_movie(movie.id, page=0, limit=-5)
    assert (total, page, limit) == (0, 1, 10)


def test_inverted_rating_range_is_rejected():
    with pytest.raises(ValidationError, match="min_rating must not exceed max_rating"):
        ReviewFilters(min_rating=8, max_rating=3)

    assert ReviewFilters(min_rating=5, max_rating=5).max_rating == 5
