from __future__ import annotations

"""
In-process storage shared by the `Memory*Repository` implementations.

Rows are plain (transient) ORM instances so the same Pydantic `from_attributes`
schemas serialize both backends. All mutations are synchronous, so each
repository call is atomic with respect to other coroutines.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List
from uuid import UUID

from app.db.models import AuditLog, Genre, Movie, Review, User


@dataclass
class MemoryStore:
    users: Dict[UUID, User] = field(default_factory=dict)
    genres: Dict[UUID, Genre] = field(default_factory=dict)
    movies: Dict[UUID, Movie] = field(default_factory=dict)
    reviews: Dict[UUID, Review] = field(default_factory=dict)
    audit_logs: List[AuditLog] = field(default_factory=list)
    _last_ts: datetime = field(default_factory=lambda: datetime.fromtimestamp(0, tz=timezone.utc))

    def now(self) -> datetime:
        """UTC timestamp, strictly increasing within this store."""
        ts = datetime.now(timezone.utc)
        if ts <= self._last_ts:
            ts = self._last_ts + timedelta(microseconds=1)
        self._last_ts = ts
        return ts

    def clear(self) -> None:
        self.users.clear()
        self.genres.clear()
        self.movies.clear()
        self.reviews.clear()
        self.audit_logs.clear()


def paginate(items: list, limit: int, offset: int) -> list:
    return items[offset : offset + limit]


# Process-wide default used when REPOSITORY_BACKEND=memory
memory_store = MemoryStore()

__all__ = ["MemoryStore", "memory_store", "paginate"]
