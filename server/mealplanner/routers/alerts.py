from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mealplanner.auth.deps import require_access, require_roles
from mealplanner.core.db import get_db
from mealplanner.core.time import now_utc
from mealplanner.models.alert import ALERT_SEVERITIES, Alert
from mealplanner.models.user import User
from mealplanner.policies.rbac import ADMIN
from mealplanner.schemas.alert import AlertListResponse, AlertOut, EscalationResponse
from mealplanner.services.audit import record_data_change
from mealplanner.services.escalation import escalate_unacknowledged_alerts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.get("", response_model=AlertListResponse)
def list_alerts(
    *,
    acknowledged: bool | None = Query(default=None),
    severity: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("alerts", "read")),
) -> AlertListResponse:
    query = db.query(Alert)
    if acknowledged is not None:
        query = query.filter(Alert.acknowledged.is_(acknowledged))
    if severity:
        if severity not in ALERT_SEVERITIES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid severity filter")
        query = query.filter(Alert.severity == severity)
    total = query.count()
    items = query.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit).all()
    return AlertListResponse(items=[AlertOut.from_orm(alert) for alert in items], total=total)


@router.post("/escalate", response_model=EscalationResponse)
def escalate_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ADMIN)),
) -> EscalationResponse:
    count = escalate_unacknowledged_alerts(db)
    logger.info("manual_alert_escalation", extra={"user_id": current_user.id, "count": count})
    return EscalationResponse(escalated_count=count, message=f"Escalated {count} alert(s)")


@router.post("/{alert_id}/acknowledge", response_model=AlertOut)
def acknowledge_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("alerts", "update")),
) -> AlertOut:
    alert = db.get(Alert, alert_id)
    if not alert:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    if alert.acknowledged:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Alert already acknowledged")

    alert.acknowledged = True
    alert.acknowledged_by_id = current_user.id
    alert.acknowledged_at = now_utc()
    db.commit()
    db.refresh(alert)

    record_data_change(db, "data_update", current_user, "alerts", alert.id, {"acknowledged": True})
    return AlertOut.from_orm(alert)
