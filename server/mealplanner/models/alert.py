from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from mealplanner.core.db import Base
from mealplanner.core.time import now_utc

ALERT_SEVERITIES = ("low", "medium", "high", "critical")
AlertSeverity = Enum(*ALERT_SEVERITIES, name="alert_severity")


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True)
    meal_order_id = Column(Integer, ForeignKey("meal_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(String(500), nullable=False)
    severity = Column(AlertSeverity, nullable=False, default="medium", index=True)
    acknowledged = Column(Boolean, default=False, nullable=False, index=True)
    acknowledged_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    escalated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False, index=True)

    meal_order = relationship("MealOrder", back_populates="alerts")
    acknowledged_by = relationship("User")
