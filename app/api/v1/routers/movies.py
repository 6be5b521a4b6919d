# app/api/v1/routers/movies.py
from __future__ import annotations

"""
Movies & movie reviews — ReelReviews
====================================

Public
------
GET  /movies                  → Catalog (paginated; genre, year, rating, search filters)
GET  /movies/{movie_id}       → Single movie with genres and `average_rating`
GET  /movies/{movie_id}/reviews → Reviews for a movie (paginated; rating range, sort)

Authenticated
-------------
POST /movies/{movie_id}/reviews → Create own review (201; one per movie)

Admin
-----
POST   /movies                → Create (at least one existing genre)
PUT    /movies/{movie_id}     → Partial update (`genre_ids` replaces the set)
DELETE /movies/{movie_id}     → Delete (reviews cascade)
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.dependencies import get_movie_service, get_review_filters, get_review_service
from app.core.security import CurrentUser, admin_user, get_current_user
from app.schemas.common import Page
from app.schemas.movie import MovieCreate, MovieFilters, MovieOut, MovieUpdate
from app.schemas.review import ReviewCreate, ReviewFilters, ReviewOut
from app.services.movie_service import MovieService
from app.services.review_service import ReviewService

router = APIRouter(prefix="/movies", tags=["Movies"])


# ──────────────────────────────────────────────────────────────
# 🎬 Catalog (public)
# ──────────────────────────────────────────────────────────────
@router.get("", response_model=Page[MovieOut], summary="List movies")
async def list_movies(
    page: int = Query(1),
    limit: int = Query(10),
    genre: Optional[str] = Query(None, description="Genre name substring (case-insensitive)"),
    genre_id: Optional[UUID] = Query(None),
    year: Optional[int] = Query(None),
    min_rating: Optional[float] = Query(None, ge=0, le=10),
    search: Optional[str] = Query(None, description="Substring of title or description"),
    movies: MovieService = Depends(get_movie_service),
) -> Page[MovieOut]:
    filters = MovieFilters(genre=genre, genre_id=genre_id, year=year, min_rating=min_rating, search=search)
    items, total, page, limit = await movies.list(filters, page, limit)
    return Page[MovieOut].build([MovieOut.model_validate(m) for m in items], total, page, limit)


@router.get("/{movie_id}", response_model=MovieOut, summary="Get movie")
async def get_movie(movie_id: UUID, movies: MovieService = Depends(get_movie_service)) -> MovieOut:
    return MovieOut.model_validate(await movies.get(movie_id))


# ──────────────────────────────────────────────────────────────
# 🛠️ Catalog management (admin)
# ──────────────────────────────────────────────────────────────
@router.post("", response_model=MovieOut, status_code=status.HTTP_201_CREATED, summary="Create movie")
async def create_movie(
    payload: MovieCreate,
    _admin: CurrentUser = Depends(admin_user),
    movies: MovieService = Depends(get_movie_service),
) -> MovieOut:
    return MovieOut.model_validate(await movies.create(payload))


@router.put("/{movie_id}", response_model=MovieOut, summary="Update movie")
async def update_movie(
    movie_id: UUID,
    payload: MovieUpdate,
    _admin: CurrentUser = Depends(admin_user),
    movies: MovieService = Depends(get_movie_service),
) -> MovieOut:
    return MovieOut.model_validate(await movies.update(movie_id, payload))


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete movie")
async def delete_movie(
    movie_id: UUID,
    _admin: CurrentUser = Depends(admin_user),
    movies: MovieService = Depends(get_movie_service),
) -> Response:
    await movies.delete(movie_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ──────────────────────────────────────────────────────────────
# ⭐ Reviews of a movie
# ──────────────────────────────────────────────────────────────
@router.get("/{movie_id}/reviews", response_model=Page[ReviewOut], summary="List reviews for a movie")
async def list_movie_reviews(
    movie_id: UUID,
    page: int = Query(1),
    limit: int = Query(10),
    filters: ReviewFilters = Depends(get_review_filters),
    reviews: ReviewService = Depends(get_review_service),
) -> Page[ReviewOut]:
    items, total, page, limit = await reviews.list_by_movie(movie_id, filters, page, limit)
    return Page[ReviewOut].build([ReviewOut.model_validate(r) for r in items], total, page, limit)


@router.post(
    "/{movie_id}/reviews",
    response_model=ReviewOut,
    status_code=status.HTTP_201_CREATED,
    summary="Review a movie",
)
async def create_review(
    movie_id: UUID,
    payload: ReviewCreate,
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
) -> ReviewOut:
    """Create the caller's review. 404 for an unknown movie, 409 when the caller already reviewed it."""
    return ReviewOut.model_validate(await reviews.create(movie_id, current_user.id, payload))
