# app/api/v1/routers/users.py
from __future__ import annotations

"""
Users — ReelReviews
===================

Public
------
GET /users/{user_id}/reviews   → A user's reviews (paginated)

Admin
-----
GET    /users                  → List (role, search filters; paginated)
GET    /users/{user_id}        → Single user
PUT    /users/{user_id}        → Edit email / username
PUT    /users/{user_id}/role   → Set role (`USER` | `ADMIN`)
DELETE /users/{user_id}        → Delete (never the calling admin)
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.dependencies import get_review_filters, get_review_service, get_user_service
from app.core.security import CurrentUser, admin_user
from app.schemas.common import Page
from app.schemas.review import ReviewFilters, ReviewOut
from app.schemas.user import RoleUpdate, UserFilters, UserOut, UserUpdate
from app.services.review_service import ReviewService
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


# ──────────────────────────────────────────────────────────────
# 🌍 Public
# ──────────────────────────────────────────────────────────────
@router.get("/{user_id}/reviews", response_model=Page[ReviewOut], summary="Reviews written by a user")
async def user_reviews(
    user_id: UUID,
    page: int = Query(1),
    limit: int = Query(10),
    filters: ReviewFilters = Depends(get_review_filters),
    reviews: ReviewService = Depends(get_review_service),
) -> Page[ReviewOut]:
    items, total, page, limit = await reviews.list_by_user(user_id, filters, page, limit)
    return Page[ReviewOut].build([ReviewOut.model_validate(r) for r in items], total, page, limit)


# ──────────────────────────────────────────────────────────────
# 🛡️ Admin
# ──────────────────────────────────────────────────────────────
@router.get("", response_model=Page[UserOut], summary="List users")
async def list_users(
    page: int = Query(1),
    limit: int = Query(10),
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Substring of email or username"),
    _admin: CurrentUser = Depends(admin_user),
    users: UserService = Depends(get_user_service),
) -> Page[UserOut]:
    items, total, page, limit = await users.list(UserFilters(role=role, search=search), page, limit)
    return Page[UserOut].build([UserOut.model_validate(u) for u in items], total, page, limit)


@router.get("/{user_id}", response_model=UserOut, summary="Get user")
async def get_user(
    user_id: UUID,
    _admin: CurrentUser = Depends(admin_user),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return UserOut.model_validate(await users.get(user_id))


@router.put("/{user_id}", response_model=UserOut, summary="Update user")
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    _admin: CurrentUser = Depends(admin_user),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return UserOut.model_validate(await users.update(user_id, payload))


@router.put("/{user_id}/role", response_model=UserOut, summary="Change user role")
async def update_user_role(
    user_id: UUID,
    payload: RoleUpdate,
    _admin: CurrentUser = Depends(admin_user),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return UserOut.model_validate(await users.update_role(user_id, payload.role))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete user")
async def delete_user(
    user_id: UUID,
    admin: CurrentUser = Depends(admin_user),
    users: UserService = Depends(get_user_service),
) -> Response:
    await users.delete(user_id, admin.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
