# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ ReelReviews · User API (Profile, Password, Reviews, Stats)               ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints (user-authenticated):                                          ║
# ║  - GET  /me              → Current user profile                          ║
# ║  - PUT  /me              → Update email / username                       ║
# ║  - PUT  /me/password     → Change password (current password required)   ║
# ║  - GET  /me/reviews      → Own reviews (paginated)                       ║
# ║  - GET  /me/stats        → Review count, mean rating, favorite genre     ║
# ╚══════════════════════════════════════════════════════════════════════════╝
"""Self-service endpoints for the authenticated user."""

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.dependencies import get_review_filters, get_review_service, get_user_service
from app.core.security import CurrentUser, get_current_user
from app.schemas.common import Page
from app.schemas.review import ReviewFilters, ReviewOut
from app.schemas.user import PasswordUpdate, ProfileUpdate, UserOut, UserStats
from app.services.review_service import ReviewService
from app.services.user_service import UserService

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("", response_model=UserOut, summary="Current user profile")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return UserOut.model_validate(await users.get(current_user.id))


@router.put("", response_model=UserOut, summary="Update profile")
async def update_me(
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    return UserOut.model_validate(await users.update_profile(current_user.id, payload))


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT, summary="Change password")
async def change_password(
    payload: PasswordUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> Response:
    await users.update_password(current_user.id, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/reviews", response_model=Page[ReviewOut], summary="My reviews")
async def my_reviews(
    page: int = Query(1),
    limit: int = Query(10),
    filters: ReviewFilters = Depends(get_review_filters),
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
) -> Page[ReviewOut]:
    items, total, page, limit = await reviews.list_by_user(current_user.id, filters, page, limit)
    return Page[ReviewOut].build([ReviewOut.model_validate(r) for r in items], total, page, limit)


@router.get("/stats", response_model=UserStats, summary="My review stats")
async def my_stats(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserStats:
    return await users.get_stats(current_user.id)
