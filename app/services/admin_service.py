# app/services/admin_service.py
from __future__ import annotations

"""Admin dashboard: platform totals and the audit log feed."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from app.db.models import AuditLog
from app.repositories.audit import AuditRepositoryProtocol
from app.repositories.genre import GenreRepositoryProtocol
from app.repositories.movie import MovieRepositoryProtocol
from app.repositories.review import ReviewRepositoryProtocol
from app.repositories.user import UserRepositoryProtocol
from app.schemas.audit import AuditLogFilters
from app.schemas.common import normalize_page
from app.schemas.stats import AdminStats

RECENT_WINDOW = timedelta(days=7)
AUDIT_DEFAULT_LIMIT = 20


class AdminService:
    def __init__(
        self,
        users: UserRepositoryProtocol,
        movies: MovieRepositoryProtocol,
        reviews: ReviewRepositoryProtocol,
        genres: GenreRepositoryProtocol,
        audit: AuditRepositoryProtocol,
    ) -> None:
        self.users = users
        self.movies = movies
        self.reviews = reviews
        self.genres = genres
        self.audit = audit

    async def stats(self) -> AdminStats:
        since = datetime.now(timezone.utc) - RECENT_WINDOW
        return AdminStats(
            total_users=await self.users.count(),
            total_movies=await self.movies.count(),
            total_reviews=await self.reviews.count(),
            total_genres=await self.genres.count(),
            average_movie_rating=round(await self.movies.mean_average_rating(), 2),
            new_users_last_7_days=await self.users.count(since=since),
            new_reviews_last_7_days=await self.reviews.count(since=since),
            new_movies_last_7_days=await self.movies.count(since=since),
        )

    async def audit_logs(
        self,
        filters: Optional[AuditLogFilters] = None,
        page: int = 1,
        limit: int = AUDIT_DEFAULT_LIMIT,
    ) -> Tuple[List[AuditLog], int, int, int]:
        page, limit = normalize_page(page, limit, default_limit=AUDIT_DEFAULT_LIMIT)
        items, total = await self.audit.list(filters or AuditLogFilters(), limit, (page - 1) * limit)
        return items, total, page, limit


__all__ = ["AdminService"]
