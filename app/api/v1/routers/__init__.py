"""
🧭 ReelReviews • API v1 Router Aggregator
=========================================

Exports the **combined `router`** and each individual sub-router.

Quick usage
-----------
    from app.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")

Auth requirements live in the child routers (`get_current_user` /
`admin_user` dependencies); rate limiting is applied app-wide.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .auth import router as auth_router
from .genres import router as genres_router
from .me import router as me_router
from .movies import router as movies_router
from .reviews import router as reviews_router
from .users import router as users_router


# ─────────────────────────────────────────────────────────────────────────────
# 🧩 Factory: build a combined v1 router with stable path layout
# ─────────────────────────────────────────────────────────────────────────────
def build_v1_router() -> APIRouter:
    r = APIRouter()
    r.include_router(auth_router)
    r.include_router(genres_router)
    r.include_router(movies_router)
    r.include_router(reviews_router)
    r.include_router(me_router)
    r.include_router(users_router)
    r.include_router(admin_router)
    return r


router = build_v1_router()

__all__ = [
    "router",
    "build_v1_router",
    "admin_router",
    "auth_router",
    "genres_router",
    "me_router",
    "movies_router",
    "reviews_router",
    "users_router",
]
