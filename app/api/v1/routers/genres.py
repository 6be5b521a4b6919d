# app/api/v1/routers/genres.py
from __future__ import annotations

"""
Genres — ReelReviews
====================

Public reads (`GET /genres`, `GET /genres/{id}`); admin-only writes.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.core.dependencies import get_genre_service
from app.core.security import CurrentUser, admin_user
from app.schemas.genre import GenreIn, GenreOut
from app.services.genre_service import GenreService

router = APIRouter(prefix="/genres", tags=["Genres"])


@router.get("", response_model=List[GenreOut], summary="List genres")
async def list_genres(genres: GenreService = Depends(get_genre_service)) -> List[GenreOut]:
    return [GenreOut.model_validate(g) for g in await genres.list()]


@router.get("/{genre_id}", response_model=GenreOut, summary="Get genre")
async def get_genre(genre_id: UUID, genres: GenreService = Depends(get_genre_service)) -> GenreOut:
    return GenreOut.model_validate(await genres.get(genre_id))


@router.post("", response_model=GenreOut, status_code=status.HTTP_201_CREATED, summary="Create genre")
async def create_genre(
    payload: GenreIn,
    _admin: CurrentUser = Depends(admin_user),
    genres: GenreService = Depends(get_genre_service),
) -> GenreOut:
    return GenreOut.model_validate(await genres.create(payload))


@router.put("/{genre_id}", response_model=GenreOut, summary="Rename genre")
async def update_genre(
    genre_id: UUID,
    payload: GenreIn,
    _admin: CurrentUser = Depends(admin_user),
    genres: GenreService = Depends(get_genre_service),
) -> GenreOut:
    return GenreOut.model_validate(await genres.update(genre_id, payload))


@router.delete("/{genre_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete genre")
async def delete_genre(
    genre_id: UUID,
    _admin: CurrentUser = Depends(admin_user),
    genres: GenreService = Depends(get_genre_service),
) -> Response:
    await genres.delete(genre_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
