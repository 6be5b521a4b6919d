# app/schemas/auth.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, constr

from app.schemas.enums import UserRole
from app.schemas.user import UserOut


# ──────────────── Register ────────────────
class RegisterRequest(BaseModel):
    email: EmailStr
    username: constr(strip_whitespace=True, min_length=3, max_length=50)
    password: constr(min_length=6, max_length=72)


# ──────────────── Login ────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# ──────────────── Token payload ────────────────
class TokenPayload(BaseModel):
    """Claims carried by an access token. Role is trusted without a DB lookup."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    role: UserRole = UserRole.USER
    exp: Optional[datetime] = None
    iat: Optional[datetime] = None
    jti: Optional[str] = None
    token_type: str = Field(default="access")
