from __future__ import annotations

"""
Audit log store and the `AuditWriter` capability.

The review worker only needs `insert(entry)`; the admin API additionally lists
entries newest first with optional filters and a total count.
"""

from typing import List, Tuple
from uuid import uuid4

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import AuditLog
from app.repositories.memory import MemoryStore, paginate
from app.schemas.audit import AuditLogEntry, AuditLogFilters


class AuditWriter:
    async def insert(self, entry: AuditLogEntry) -> AuditLog:
        raise NotImplementedError


class AuditRepositoryProtocol(AuditWriter):
    async def list(self, filters: AuditLogFilters, limit: int, offset: int) -> Tuple[List[AuditLog], int]:
        raise NotImplementedError


def _to_row(entry: AuditLogEntry) -> AuditLog:
    return AuditLog(
        user_id=entry.user_id,
        movie_id=entry.movie_id,
        review_id=entry.review_id,
        event=entry.event,
        details=entry.details,
    )


def _apply_filters(stmt: Select, filters: AuditLogFilters) -> Select:
    if filters.event:
        stmt = stmt.where(AuditLog.event == filters.event)
    if filters.user_id is not None:
        stmt = stmt.where(AuditLog.user_id == filters.user_id)
    if filters.from_date is not None:
        stmt = stmt.where(AuditLog.created_at >= filters.from_date)
    if filters.to_date is not None:
        stmt = stmt.where(AuditLog.created_at <= filters.to_date)
    return stmt


class SqlAlchemyAuditRepository(AuditRepositoryProtocol):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, entry: AuditLogEntry) -> AuditLog:
        row = _to_row(entry)
        self.session.add(row)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return row

    async def list(self, filters: AuditLogFilters, limit: int, offset: int) -> Tuple[List[AuditLog], int]:
        total = (await self.session.execute(_apply_filters(select(func.count(AuditLog.id)), filters))).scalar_one()
        stmt = _apply_filters(select(AuditLog), filters).order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        return list((await self.session.execute(stmt)).scalars().all()), int(total)


class SessionAuditWriter(AuditWriter):
    """`AuditWriter` that opens a fresh session per insert (background use)."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self.session_maker = session_maker

    async def insert(self, entry: AuditLogEntry) -> AuditLog:
        async with self.session_maker() as session:
            return await SqlAlchemyAuditRepository(session).insert(entry)


class MemoryAuditRepository(AuditRepositoryProtocol):
    def __init__(self, store: MemoryStore, max_entries: int = 10000) -> None:
        self.store = store
        self._max = max_entries

    async def insert(self, entry: AuditLogEntry) -> AuditLog:
        row = _to_row(entry)
        row.id = row.id or uuid4()
        row.created_at = self.store.now()
        self.store.audit_logs.append(row)
        if len(self.store.audit_logs) > self._max:
            del self.store.audit_logs[: -self._max]
        return row

    async def list(self, filters: AuditLogFilters, limit: int, offset: int) -> Tuple[List[AuditLog], int]:
        items = [
            e
            for e in reversed(self.store.audit_logs)
            if (not filters.event or e.event == filters.event)
            and (filters.user_id is None or e.user_id == filters.user_id)
            and (filters.from_date is None or e.created_at >= filters.from_date)
            and (filters.to_date is None or e.created_at <= filters.to_date)
        ]
        return paginate(items, limit, offset), len(items)


__all__ = [
    "AuditWriter",
    "AuditRepositoryProtocol",
    "SqlAlchemyAuditRepository",
    "SessionAuditWriter",
    "MemoryAuditRepository",
]
