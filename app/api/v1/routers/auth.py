# app/api/v1/routers/auth.py
from __future__ import annotations

"""
Authentication API — ReelReviews
================================

Endpoints
---------
POST /auth/register
    Create an account (role `USER`) and return an access token.
POST /auth/login
    Email + password sign-in; returns an access token.

Token-issuing responses are marked **no-store**. Business rules live in
`app.services.auth`.
"""

from fastapi import APIRouter, Body, Depends, Response, status

from app.core.dependencies import get_user_repository
from app.repositories.user import UserRepositoryProtocol
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.user import UserOut
from app.security_headers import set_sensitive_cache
from app.services.auth.login_service import login_user
from app.services.auth.signup_service import register_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ──────────────────────────────────────────────────────────────
# 📝 POST /auth/register
# ──────────────────────────────────────────────────────────────
@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(
    response: Response,
    payload: RegisterRequest = Body(...),
    users: UserRepositoryProtocol = Depends(get_user_repository),
) -> TokenResponse:
    set_sensitive_cache(response)
    user, token = await register_user(payload, users)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))


# ──────────────────────────────────────────────────────────────
# 🔐 POST /auth/login
# ──────────────────────────────────────────────────────────────
@router.post("/login", response_model=TokenResponse, summary="Email + password login")
async def login(
    response: Response,
    payload: LoginRequest = Body(...),
    users: UserRepositoryProtocol = Depends(get_user_repository),
) -> TokenResponse:
    """Authenticate with email/password. Unknown email and wrong password both return 401."""
    set_sensitive_cache(response)
    user, token = await login_user(payload, users)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))
