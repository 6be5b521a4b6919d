from __future__ import annotations

"""
Central enum definitions used across ReelReviews.

Design notes
------------
• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (DB enums and audit rows depend on them).
• Keep `__all__` in sync when adding new enums.
"""

from enum import Enum as PyEnum
from typing import Optional


# ──────────────────────────────────────────────────────────────
# Auth
# ──────────────────────────────────────────────────────────────
class UserRole(str, PyEnum):
    """Account role. Admins manage catalog/users and may delete any review."""
    USER = "USER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["UserRole"]:
        """Case-insensitive lookup; returns None for unknown values."""
        if value is None:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


# ──────────────────────────────────────────────────────────────
# Reviews pipeline
# ──────────────────────────────────────────────────────────────
class ReviewEventType(str, PyEnum):
    """Kind of review mutation; the value is stored verbatim as `audit_logs.event`."""
    CREATED = "review_created"
    UPDATED = "review_updated"
    DELETED = "review_deleted"


class ReviewSort(str, PyEnum):
    """Ordering for review listings (default: newest first)."""
    RATING_DESC = "rating_desc"
    RATING_ASC = "rating_asc"
    CREATED_DESC = "created_desc"
    CREATED_ASC = "created_asc"


__all__ = ["UserRole", "ReviewEventType", "ReviewSort"]
