"""Escalation of alerts nobody acknowledged in time."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from mealplanner.core.config import settings
from mealplanner.core.time import now_utc
from mealplanner.models.alert import Alert
from mealplanner.models.user import User
from mealplanner.policies.rbac import ADMIN
from mealplanner.services.notifications import notify_alert_escalated

logger = logging.getLogger(__name__)

ESCALATED_SEVERITY = "critical"


def escalate_unacknowledged_alerts(
    db: Session,
    threshold_minutes: int | None = None,
    now: datetime | None = None,
) -> int:
    """Escalate every unacknowledged alert older than the threshold.

    An alert is escalated at most once; ``escalated_at`` marks it. Returns the
    number of alerts escalated by this run.
    """

    threshold = settings.ALERT_ESCALATION_MINUTES if threshold_minutes is None else threshold_minutes
    current = now or now_utc()
    cutoff = current - timedelta(minutes=threshold)

    admins = db.query(User).filter(User.role == ADMIN, User.is_active.is_(True)).all()
    if not admins:
        logger.warning("alert_escalation_skipped_no_admins")
        return 0

    alerts = (
        db.query(Alert)
        .filter(
            Alert.acknowledged.is_(False),
            Alert.escalated_at.is_(None),
            Alert.created_at < cutoff,
        )
        .order_by(Alert.created_at.asc())
        .all()
    )
    if not alerts:
        return 0

    for alert in alerts:
        alert.escalated_at = current
        alert.severity = ESCALATED_SEVERITY
    db.commit()

    for alert in alerts:
        notify_alert_escalated(alert, admins)

    logger.info(
        "alerts_escalated",
        extra={"count": len(alerts), "threshold_minutes": threshold, "admin_count": len(admins)},
    )
    return len(alerts)
