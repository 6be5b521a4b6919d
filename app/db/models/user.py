from __future__ import annotations

"""
👤 ReelReviews — User (accounts & auth)
======================================

Account entity storing login credentials and the role used for authorization.

Design highlights
-----------------
• **Unique** email and username (checked by the service, enforced by the DB).
• **DB-driven, tz-aware timestamps** via `TimestampMixin`.
• Role stored as a string enum (`USER` / `ADMIN`); tokens carry it as a claim.
"""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, Enum, String, text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base_class import Base, TimestampMixin
from app.schemas.enums import UserRole


class User(TimestampMixin, Base):
    __tablename__ = "users"

    # ── Identity & Authentication ─────────────────────────────────────────────
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)

    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(100), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False, doc="BCrypt hash of the password")

    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, length=20),
        nullable=False,
        server_default=text("'USER'"),
        default=UserRole.USER,
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(trim(email)) > 0", name="email_not_blank"),
        CheckConstraint("length(trim(username)) > 0", name="username_not_blank"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
