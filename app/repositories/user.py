from __future__ import annotations

"""User store: protocol, SQLAlchemy and in-memory implementations."""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UserAlreadyExistsException
from app.db.models import User
from app.repositories.memory import MemoryStore, paginate
from app.schemas.enums import UserRole
from app.schemas.user import UserFilters


class UserRepositoryProtocol:
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        raise NotImplementedError

    async def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    async def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    async def list(self, filters: UserFilters, limit: int, offset: int) -> Tuple[List[User], int]:
        raise NotImplementedError

    async def create(self, user: User) -> User:
        raise NotImplementedError

    async def update(self, user: User) -> User:
        raise NotImplementedError

    async def delete(self, user_id: UUID) -> None:
        raise NotImplementedError

    async def count(self, since: Optional[datetime] = None) -> int:
        raise NotImplementedError


def _apply_filters(stmt: Select, filters: UserFilters) -> Select:
    role = UserRole.parse(filters.role)
    if role is not None:
        stmt = stmt.where(User.role == role)
    if filters.search:
        pattern = f"%{filters.search}%"
        stmt = stmt.where(or_(User.email.ilike(pattern), User.username.ilike(pattern)))
    return stmt


class SqlAlchemyUserRepository(UserRepositoryProtocol):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalars().first()

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(func.lower(User.username) == username.lower()))
        return result.scalars().first()

    async def list(self, filters: UserFilters, limit: int, offset: int) -> Tuple[List[User], int]:
        total = (await self.session.execute(_apply_filters(select(func.count(User.id)), filters))).scalar_one()
        stmt = _apply_filters(select(User), filters).order_by(User.created_at.desc()).limit(limit).offset(offset)
        return list((await self.session.execute(stmt)).scalars().all()), int(total)

    async def _commit(self, user: User) -> User:
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise UserAlreadyExistsException() from exc
        await self.session.refresh(user)
        return user

    async def create(self, user: User) -> User:
        return await self._commit(user)

    async def update(self, user: User) -> User:
        return await self._commit(user)

    async def delete(self, user_id: UUID) -> None:
        await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.commit()

    async def count(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count(User.id))
        if since is not None:
            stmt = stmt.where(User.created_at >= since)
        return int((await self.session.execute(stmt)).scalar_one())


class MemoryUserRepository(UserRepositoryProtocol):
    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self.store.users.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.store.users.values() if u.email.lower() == email.lower()), None)

    async def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.store.users.values() if u.username.lower() == username.lower()), None)

    async def list(self, filters: UserFilters, limit: int, offset: int) -> Tuple[List[User], int]:
        role = UserRole.parse(filters.role)
        needle = (filters.search or "").lower()
        items = [
            u
            for u in self.store.users.values()
            if (role is None or u.role == role)
            and (not needle or needle in u.email.lower() or needle in u.username.lower())
        ]
        items.sort(key=lambda u: u.created_at, reverse=True)
        return paginate(items, limit, offset), len(items)

    def _ensure_unique(self, user: User) -> None:
        for other in self.store.users.values():
            if other.id == user.id:
                continue
            if other.email.lower() == user.email.lower():
                raise UserAlreadyExistsException(field="email")
            if other.username.lower() == user.username.lower():
                raise UserAlreadyExistsException(field="username")

    async def create(self, user: User) -> User:
        self._ensure_unique(user)
        now = self.store.now()
        user.id = user.id or uuid4()
        user.role = user.role or UserRole.USER
        user.created_at = now
        user.updated_at = now
        self.store.users[user.id] = user
        return user

    async def update(self, user: User) -> User:
        self._ensure_unique(user)
        user.updated_at = self.store.now()
        self.store.users[user.id] = user
        return user

    async def delete(self, user_id: UUID) -> None:
        self.store.users.pop(user_id, None)
        # ON DELETE CASCADE (reviews) / SET NULL (audit_logs)
        for review_id in [r.id for r in self.store.reviews.values() if r.user_id == user_id]:
            self.store.reviews.pop(review_id, None)
        for entry in self.store.audit_logs:
            if entry.user_id == user_id:
                entry.user_id = None

    async def count(self, since: Optional[datetime] = None) -> int:
        return sum(1 for u in self.store.users.values() if since is None or u.created_at >= since)


__all__ = ["UserRepositoryProtocol", "SqlAlchemyUserRepository", "MemoryUserRepository"]
