from __future__ import annotations

import logging
from typing import Iterable

from mealplanner.models.alert import Alert
from mealplanner.models.user import User

logger = logging.getLogger(__name__)


def notify_alert_created(alert: Alert) -> None:
    """Placeholder hook for pushing new alerts to the kitchen."""

    logger.info(
        "alert_created",
        extra={
            "alert_id": alert.id,
            "meal_order_id": alert.meal_order_id,
            "severity": alert.severity,
        },
    )


def notify_alert_escalated(alert: Alert, recipients: Iterable[User]) -> None:
    """Placeholder hook for paging admins about stale alerts."""

    logger.warning(
        "alert_escalated",
        extra={
            "alert_id": alert.id,
            "meal_order_id": alert.meal_order_id,
            "alert_message": alert.message,
            "recipients": [user.email for user in recipients],
        },
    )
