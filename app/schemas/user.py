from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, constr

from app.schemas.enums import UserRole


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(BaseModel):
    """Admin edit of another account; omitted fields stay unchanged."""
    email: Optional[EmailStr] = None
    username: Optional[constr(strip_whitespace=True, min_length=3, max_length=50)] = None


class ProfileUpdate(UserUpdate):
    """Self-service profile edit (same fields as the admin variant)."""


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: constr(min_length=6, max_length=72)


class RoleUpdate(BaseModel):
    # Validated by the service so unknown roles map to InvalidRole (400), not 422.
    role: str = Field(..., min_length=1, max_length=16)


class UserFilters(BaseModel):
    role: Optional[str] = None
    search: Optional[str] = None


class UserStats(BaseModel):
    total_reviews: int = 0
    average_rating: float = 0.0
    favorite_genre: Optional[str] = None
