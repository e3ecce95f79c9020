from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from mealplanner.models.alert import Alert
from mealplanner.models.meal_order import MealOrder
from mealplanner.services.notifications import notify_alert_created

logger = logging.getLogger(__name__)

URGENT_ORDER_SEVERITY = "high"


def urgent_order_message(order: MealOrder) -> str:
    resident = order.resident
    name = resident.name if resident else f"resident #{order.resident_id}"
    room = resident.room_number if resident else "?"
    return f"Urgent {order.meal_type.capitalize()} order for {name} (Room {room})"


def create_urgent_order_alert(db: Session, order: MealOrder) -> Alert:
    """Raise a high severity alert for an order flagged urgent.

    The caller decides when an order has become urgent; this only writes the
    alert and fires the notification hook.
    """

    alert = Alert(
        meal_order_id=order.id,
        message=urgent_order_message(order),
        severity=URGENT_ORDER_SEVERITY,
        acknowledged=False,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    notify_alert_created(alert)
    return alert
