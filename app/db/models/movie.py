from __future__ import annotations

"""
🎬 ReelReviews — Movie & Movie ⇄ Genre association
=================================================

Catalog entry carrying the derived `average_rating`.

Conventions
-----------
• `average_rating` is **derived** from `reviews.rating` and only written by the
  rating recompute (`COALESCE(AVG(rating), 0)`); it is eventually consistent.
• `movie_genres` is a plain association table with a composite PK and
  `ON DELETE CASCADE` on both sides.
"""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin


movie_genres = Table(
    "movie_genres",
    Base.metadata,
    Column("movie_id", UUID(as_uuid=True), ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", UUID(as_uuid=True), ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Movie(TimestampMixin, Base):
    __tablename__ = "movies"

    # ── Identity & descriptive fields ──────────────────────────────────────
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, server_default=text("''"), default="")
    release_year = Column(Integer, nullable=True, index=True)
    director = Column(String(255), nullable=True)
    duration_minutes = Column(Integer, nullable=True)

    # ── Derived aggregate ──────────────────────────────────────────────────
    average_rating = Column(Numeric(4, 2), nullable=False, server_default=text("0"), default=0)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("average_rating >= 0 AND average_rating <= 10", name="average_rating_range"),
        Index("ix_movies_average_rating", "average_rating"),
    )

    # ── Relationships ──────────────────────────────────────────────────────
    genres = relationship("Genre", secondary=movie_genres, lazy="selectin", order_by="Genre.name")
