from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from mealplanner.core.db import Base
from mealplanner.core.time import now_utc

MEAL_TYPES = ("breakfast", "lunch", "dinner")
ORDER_STATUSES = ("pending", "prepared", "completed")
AGGREGATABLE_STATUSES = ("pending", "prepared")

MealType = Enum(*MEAL_TYPES, name="meal_type")
OrderStatus = Enum(*ORDER_STATUSES, name="meal_order_status")


class MealOrder(Base):
    __tablename__ = "meal_orders"
    __table_args__ = (
        UniqueConstraint("resident_id", "date", "meal_type", name="uq_meal_orders_resident_date_meal"),
    )

    id = Column(Integer, primary_key=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="RESTRICT"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    meal_type = Column(MealType, nullable=False)
    status = Column(OrderStatus, nullable=False, default="pending", index=True)
    urgent = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, default=1, nullable=False)
    breakfast_options = Column(JSON, nullable=True)
    lunch_options = Column(JSON, nullable=True)
    dinner_options = Column(JSON, nullable=True)
    special_notes = Column(Text, nullable=True)
    prepared_at = Column(DateTime(timezone=True), nullable=True)
    prepared_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    resident = relationship("Resident", back_populates="meal_orders")
    prepared_by = relationship("User", foreign_keys=[prepared_by_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    alerts = relationship("Alert", back_populates="meal_order", cascade="all, delete-orphan")
