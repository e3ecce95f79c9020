from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from mealplanner.core.db import Base
from mealplanner.core.time import now_utc


class Resident(Base):
    __tablename__ = "residents"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    room_number = Column(String(50), nullable=False, index=True)
    table_number = Column(String(50), nullable=True)
    station = Column(String(120), nullable=True)
    dietary_restrictions = Column(JSON, nullable=False, default=list)
    aversions = Column(Text, nullable=True)
    special_notes = Column(Text, nullable=True)
    high_calorie = Column(Boolean, default=False, nullable=False)
    active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    meal_orders = relationship("MealOrder", back_populates="resident")
