from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from mealplanner.auth.deps import require_access
from mealplanner.core.db import get_db
from mealplanner.models.audit_log import AUDIT_ACTIONS, AUDIT_STATUSES, AuditLog
from mealplanner.models.user import User
from mealplanner.schemas.audit import AuditLogListResponse, AuditLogOut

router = APIRouter(prefix="/api/audit-logs", tags=["audit-logs"])


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


@router.get("", response_model=AuditLogListResponse)
def list_audit_logs(
    *,
    user_id: str | None = Query(default=None, alias="userId"),
    email: str | None = Query(default=None),
    action: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    resource: str | None = Query(default=None),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("audit-logs", "read")),
) -> AuditLogListResponse:
    query = db.query(AuditLog)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if email:
        query = query.filter(func.lower(AuditLog.email) == email.strip().lower())
    if action:
        if action not in AUDIT_ACTIONS:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action filter")
        query = query.filter(AuditLog.action == action)
    if status_filter:
        if status_filter not in AUDIT_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status filter")
        query = query.filter(AuditLog.status == status_filter)
    if resource:
        query = query.filter(AuditLog.resource == resource)
    if start_date:
        query = query.filter(AuditLog.created_at >= _day_start(start_date))
    if end_date:
        # End date is inclusive of the whole day
        query = query.filter(AuditLog.created_at < _day_start(end_date + timedelta(days=1)))

    total = query.order_by(None).count()
    items = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0
    return AuditLogListResponse(
        items=[AuditLogOut.from_orm(entry) for entry in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )
