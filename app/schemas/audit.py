# app/schemas/audit.py
from __future__ import annotations

"""
Pydantic schemas for Audit Logs — ReelReviews
=============================================

`AuditLogEntry` is what the review worker hands to an audit writer; absent
references stay `None` (never a zero UUID). `AuditLogOut` is the admin API view.

Notes
-----
- Uses Pydantic v2 style with `from_attributes=True` for ORM compatibility.
- `details` is free text and defaults to the empty string.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogEntry(BaseModel):
    """Insert payload for the audit writer."""

    user_id: Optional[UUID] = None
    movie_id: Optional[UUID] = None
    review_id: Optional[UUID] = None
    event: str = Field(..., min_length=1)
    details: str = ""


class AuditLogOut(BaseModel):
    """Single audit log record returned by the admin API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Audit log ID")
    user_id: Optional[UUID] = Field(None, description="Actor user ID, if present")
    movie_id: Optional[UUID] = Field(None, description="Affected movie, if present")
    review_id: Optional[UUID] = Field(None, description="Affected review, if present")
    event: str = Field(..., description="Event kind, e.g. `review_created`")
    details: str = ""
    created_at: datetime = Field(..., description="UTC time the entry was written")


class AuditLogFilters(BaseModel):
    event: Optional[str] = None
    user_id: Optional[UUID] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
