# app/db/models/__init__.py
"""
ReelReviews — ORM model package
===============================

Importing the package registers every table on `Base.metadata`.
"""

from app.db.base_class import Base

# ───────────────────────────────────────────────────────────────
# Accounts & audit
# ───────────────────────────────────────────────────────────────
from .user import User
from .audit_log import AuditLog

# ───────────────────────────────────────────────────────────────
# Catalog & engagement
# ───────────────────────────────────────────────────────────────
from .genre import Genre
from .movie import Movie, movie_genres
from .review import Review
