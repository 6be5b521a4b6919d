# app/core/config.py
from __future__ import annotations

"""
# ReelReviews — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- CSV → list helpers for CORS origins.
- Tunables for the review event queue, rate limiting and body size.

## Usage
    from app.core.config import settings
"""

import logging
from typing import Annotated, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - Explicit secret for JWT signing (HS*).
        - Database password is required; no silent defaults.

    Reviews pipeline:
        - `REVIEW_EVENT_QUEUE_SIZE` bounds the in-memory event channel.
          A full queue drops events instead of blocking requests.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "ReelReviews API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(24 * 60, ge=5, le=7 * 24 * 60)

    # ── Rate limiting / request guards ────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = Field(100, ge=1)
    RATELIMIT_STORAGE_URI: Optional[str] = None  # e.g. "redis://…"; memory when unset
    MAX_BODY_BYTES: int = Field(1024 * 1024, ge=1024)

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "reelreviews"

    # "memory" wires the in-process repositories (demo / tests)
    REPOSITORY_BACKEND: Literal["sql", "memory"] = "sql"

    # ── Review event pipeline ─────────────────────────────────
    REVIEW_EVENT_QUEUE_SIZE: int = Field(100, ge=1, le=100_000)

    # ── CORS ─────────────────────────────────────────────────
    # CSV in the environment: BACKEND_CORS_ORIGINS="https://a.example,https://b.example"
    BACKEND_CORS_ORIGINS: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://localhost:5173"]
    )

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"

    @property
    def DATABASE_URL(self) -> str:
        """Sync DSN."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN."""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def cors_origins_list(self) -> List[str]:
        return [str(u).rstrip("/") for u in (self.BACKEND_CORS_ORIGINS or [])]

    @property
    def ratelimit_storage(self) -> str:
        """Storage URI for SlowAPI/limits; in-process memory when unset."""
        return self.RATELIMIT_STORAGE_URI or "memory://"


# Singleton instance
settings = Settings()
