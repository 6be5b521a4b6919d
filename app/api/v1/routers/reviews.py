# app/api/v1/routers/reviews.py
from __future__ import annotations

"""
Review mutations — ReelReviews
==============================

PUT    /reviews/{review_id}  → Author-only partial update
DELETE /reviews/{review_id}  → Author or admin (204)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.core.dependencies import get_review_service
from app.core.security import CurrentUser, get_current_user
from app.schemas.review import ReviewOut, ReviewUpdate
from app.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.put("/{review_id}", response_model=ReviewOut, summary="Update own review")
async def update_review(
    review_id: UUID,
    payload: ReviewUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
) -> ReviewOut:
    return ReviewOut.model_validate(await reviews.update(review_id, current_user.id, payload))


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete review")
async def delete_review(
    review_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
) -> Response:
    await reviews.delete(review_id, current_user.id, is_admin=current_user.is_admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
