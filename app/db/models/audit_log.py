from __future__ import annotations

"""
🧾 ReelReviews — Audit Logs
==========================

Immutable record of a review mutation, written by the background event worker.

Design highlights
-----------------
• Keyed by UUID; `created_at` is **UTC & DB-driven**.
• `ondelete=SET NULL` on the user/movie FKs so deleting either does not
  cascade-delete audit history.
• `review_id` is an indexed plain reference: `review_deleted` entries point at
  rows that no longer exist.
• `details` defaults to the empty string.
"""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Text, func, text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base_class import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    # ─────────────────────────────
    # 🔑 Primary Key
    # ─────────────────────────────
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)

    # ─────────────────────────────
    # 🔗 Optional references
    # ─────────────────────────────
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    movie_id = Column(UUID(as_uuid=True), ForeignKey("movies.id", ondelete="SET NULL"), nullable=True, index=True)
    review_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    # ─────────────────────────────
    # 📝 Event
    # ─────────────────────────────
    event = Column(Text, nullable=False, index=True)
    details = Column(Text, nullable=False, server_default=text("''"), default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(trim(event)) > 0", name="event_not_blank"),
        Index("ix_audit_logs_event_ts_desc", "event", text("created_at DESC")),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AuditLog id={self.id} event='{self.event}' created_at={self.created_at}>"
