from __future__ import annotations

"""
⭐ ReelReviews — Review (user ratings & comments)
================================================

A user's rating and commentary for a `Movie`.

Highlights
----------
• **Single review per (movie, user)** via unique constraint; the service
  pre-checks, the constraint catches racing duplicates.
• Rating is an **integer 1..10**; title and content are required.
• Mutable only by its author; deletable by the author or an admin.
"""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID

from app.db.base_class import Base, TimestampMixin


class Review(TimestampMixin, Base):
    __tablename__ = "reviews"

    # ── Identity & ownership ────────────────────────────────────────────────
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)

    movie_id = Column(UUID(as_uuid=True), ForeignKey("movies.id", ondelete="CASCADE"),
                      nullable=False, index=True, doc="Reviewed movie.")
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True, doc="Author of the review.")

    # ── Core review fields ──────────────────────────────────────────────────
    rating = Column(SmallInteger, nullable=False, doc="User rating, integer 1..10.")
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    # ── Constraints & indexes ──────────────────────────────────────────────
    __table_args__ = (
        UniqueConstraint("movie_id", "user_id", name="uq_reviews_movie_user"),
        CheckConstraint("rating BETWEEN 1 AND 10", name="rating_range"),
        Index("ix_reviews_rating", "rating"),
        Index("ix_reviews_movie_created", "movie_id", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Review id={self.id} movie={self.movie_id} user={self.user_id} rating={self.rating}>"
