# app/api/v1/routers/admin.py
from __future__ import annotations

"""
Admin dashboard — ReelReviews
=============================

GET /stats       → Platform totals and last-7-day counts
GET /audit-logs  → Review audit trail, newest first (event, user_id, from, to;
                   page size defaults to 20)
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_admin_service
from app.core.security import CurrentUser, admin_user
from app.schemas.audit import AuditLogFilters, AuditLogOut
from app.schemas.common import Page
from app.schemas.stats import AdminStats
from app.services.admin_service import AUDIT_DEFAULT_LIMIT, AdminService

router = APIRouter(tags=["Admin"])


@router.get("/stats", response_model=AdminStats, summary="Platform statistics")
async def get_stats(
    _admin: CurrentUser = Depends(admin_user),
    admin: AdminService = Depends(get_admin_service),
) -> AdminStats:
    return await admin.stats()


@router.get("/audit-logs", response_model=Page[AuditLogOut], summary="List audit log entries")
async def list_audit_logs(
    page: int = Query(1),
    limit: int = Query(AUDIT_DEFAULT_LIMIT),
    event: Optional[str] = Query(None, description="e.g. `review_created`"),
    user_id: Optional[UUID] = Query(None),
    from_date: Optional[datetime] = Query(None, alias="from"),
    to_date: Optional[datetime] = Query(None, alias="to"),
    _admin: CurrentUser = Depends(admin_user),
    admin: AdminService = Depends(get_admin_service),
) -> Page[AuditLogOut]:
    filters = AuditLogFilters(event=event, user_id=user_id, from_date=from_date, to_date=to_date)
    items, total, page, limit = await admin.audit_logs(filters, page, limit)
    return Page[AuditLogOut].build([AuditLogOut.model_validate(a) for a in items], total, page, limit)
