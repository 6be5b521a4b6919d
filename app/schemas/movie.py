from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, constr

from app.schemas.genre import GenreOut


class MovieCreate(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: str = ""
    release_year: Optional[int] = Field(None, ge=1888, le=2100)
    director: Optional[constr(strip_whitespace=True, max_length=255)] = None
    duration_minutes: Optional[int] = Field(None, ge=1, le=2000)
    # Empty list is rejected by the service (NoGenresProvided → 400).
    genre_ids: List[UUID] = Field(default_factory=list)


class MovieUpdate(BaseModel):
    """Partial update; `genre_ids`, when given, replaces the whole set."""
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[str] = None
    release_year: Optional[int] = Field(None, ge=1888, le=2100)
    director: Optional[constr(strip_whitespace=True, max_length=255)] = None
    duration_minutes: Optional[int] = Field(None, ge=1, le=2000)
    genre_ids: Optional[List[UUID]] = None


class MovieOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str = ""
    release_year: Optional[int] = None
    director: Optional[str] = None
    duration_minutes: Optional[int] = None
    average_rating: float = 0.0
    genres: List[GenreOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MovieFilters(BaseModel):
    genre: Optional[str] = None
    genre_id: Optional[UUID] = None
    year: Optional[int] = None
    min_rating: Optional[float] = None
    search: Optional[str] = None
