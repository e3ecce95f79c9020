from __future__ import annotations

from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import String, cast
from sqlalchemy.orm import Query, Session

from mealplanner.models.meal_order import MEAL_TYPES, ORDER_STATUSES, MealOrder
from mealplanner.models.resident import Resident
from mealplanner.services.residents_query import contains


def build_meal_orders_query(
    db: Session,
    *,
    resident_id: int | None = None,
    resident_name: str | None = None,
    room_number: str | None = None,
    meal_type: str | None = None,
    status_filter: str | None = None,
    dietary_restrictions: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    urgent: bool | None = None,
    base_query: Query | None = None,
) -> Query:
    query: Query = base_query if base_query is not None else db.query(MealOrder)

    if resident_name or room_number or dietary_restrictions:
        query = query.join(MealOrder.resident)
        if resident_name:
            query = query.filter(contains(Resident.name, resident_name))
        if room_number:
            query = query.filter(contains(Resident.room_number, room_number))
        if dietary_restrictions:
            query = query.filter(contains(cast(Resident.dietary_restrictions, String), dietary_restrictions))

    if resident_id is not None:
        query = query.filter(MealOrder.resident_id == resident_id)
    if meal_type:
        if meal_type not in MEAL_TYPES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid meal type filter")
        query = query.filter(MealOrder.meal_type == meal_type)
    if status_filter:
        if status_filter not in ORDER_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status filter")
        query = query.filter(MealOrder.status == status_filter)
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="startDate must not be after endDate")
    if start_date:
        query = query.filter(MealOrder.date >= start_date)
    if end_date:
        query = query.filter(MealOrder.date <= end_date)
    if urgent is not None:
        query = query.filter(MealOrder.urgent.is_(urgent))
    return query
