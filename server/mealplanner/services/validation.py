"""Named checks run before residents and meal orders are written.

Each check raises ``HTTPException`` with the status the API reports for the
violation and returns quietly otherwise.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from mealplanner.models.meal_order import MealOrder
from mealplanner.models.resident import Resident
from mealplanner.policies.rbac import CAREGIVER

INACTIVE_RESIDENT_MESSAGE = (
    "Cannot create meal orders for inactive residents. "
    "Please activate the resident first or select a different resident."
)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def ensure_resident_required_fields(name: str | None, room_number: str | None) -> None:
    missing = []
    if _is_blank(name):
        missing.append("name")
    if _is_blank(room_number):
        missing.append("room_number")
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing required resident fields: {', '.join(missing)}",
        )


def ensure_resident_active(db: Session, resident_id: int | None, operation: str) -> Resident | None:
    """Reject new orders for residents that are missing or inactive.

    Updates pass through untouched so that history stays editable after a
    resident is deactivated.
    """

    if operation != "create":
        return None
    if resident_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Resident is required")

    resident = db.get(Resident, resident_id)
    if resident is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resident not found")
    if not resident.active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INACTIVE_RESIDENT_MESSAGE)
    return resident


def ensure_meal_options_present(meal_type: str, breakfast: Any, lunch: Any, dinner: Any) -> None:
    selected = {"breakfast": breakfast, "lunch": lunch, "dinner": dinner}.get(meal_type)
    if selected is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{meal_type.capitalize()} options are required for a {meal_type} order",
        )


def ensure_unique_order(
    db: Session,
    resident_id: int,
    day: date,
    meal_type: str,
    *,
    exclude_id: int | None = None,
) -> None:
    query = db.query(MealOrder.id).filter(
        MealOrder.resident_id == resident_id,
        MealOrder.date == day,
        MealOrder.meal_type == meal_type,
    )
    if exclude_id is not None:
        query = query.filter(MealOrder.id != exclude_id)
    if query.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A {meal_type} order already exists for this resident on {day.isoformat()}",
        )


def ensure_version_matches(order: MealOrder, version: int | None) -> None:
    if version is not None and version != order.version:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Order was modified by another user. Reload and try again.",
        )


def ensure_caregiver_can_modify(order: MealOrder, role: str) -> None:
    if role == CAREGIVER and order.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Caregivers can only modify pending orders",
        )
