from __future__ import annotations

"""
Review payloads and listing filters.

`ReviewUpdate` follows "zero value means unchanged": a rating of `0`, an empty
title or empty content leave the stored value as is.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, constr, model_validator

from app.schemas.enums import ReviewSort


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=10)
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    content: constr(strip_whitespace=True, min_length=1)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=0, le=10)
    title: Optional[constr(strip_whitespace=True, max_length=255)] = None
    content: Optional[constr(strip_whitespace=True)] = None


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    movie_id: UUID
    user_id: UUID
    rating: int
    title: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewFilters(BaseModel):
    min_rating: Optional[int] = Field(None, ge=1, le=10)
    max_rating: Optional[int] = Field(None, ge=1, le=10)
    sort: ReviewSort = ReviewSort.CREATED_DESC

    @model_validator(mode="after")
    def _check_range(self) -> "ReviewFilters":
        if self.min_rating and self.max_rating and self.min_rating > self.max_rating:
            raise ValueError("min_rating must not exceed max_rating")
        return self
