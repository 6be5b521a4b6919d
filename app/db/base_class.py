# app/db/base_class.py
from __future__ import annotations

"""
ReelReviews — declarative Base & timestamp mixin.

Every model sets `__tablename__` explicitly (plural table names). Constraint
and index names come from `NAMING_CONVENTION`, so the initial migration and
autogenerate agree on them.
"""

from datetime import datetime

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    def __repr__(self) -> str:  # pragma: no cover
        shown = [
            f"{key}={self.__dict__[key]!r}"
            for key in ("id", "email", "name", "title", "event")
            if key in self.__dict__
        ]
        return f"{type(self).__name__}({', '.join(shown)})"


class TimestampMixin:
    """`created_at` set on insert, `updated_at` bumped by the DB on every UPDATE (both UTC)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


__all__ = ["Base", "TimestampMixin", "NAMING_CONVENTION"]
