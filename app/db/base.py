# app/db/base.py
"""
ReelReviews — SQLAlchemy Base registry
======================================

Import all ORM models so their tables are registered on `Base.metadata`.
Alembic's `env.py` imports this module for autogeneration.

Tip: Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base
from app.db.models import AuditLog, Genre, Movie, Review, User, movie_genres

__all__ = [
    "Base",
    "User",
    "AuditLog",
    "Genre",
    "Movie",
    "movie_genres",
    "Review",
]
