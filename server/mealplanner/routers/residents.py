from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from mealplanner.auth.deps import require_access
from mealplanner.core.db import get_db
from mealplanner.models.meal_order import MealOrder
from mealplanner.models.resident import Resident
from mealplanner.models.user import User
from mealplanner.schemas.resident import (
    ResidentCreate,
    ResidentListResponse,
    ResidentOut,
    ResidentSearchFilters,
    ResidentUpdate,
)
from mealplanner.services.audit import record_data_change
from mealplanner.services.residents_query import build_residents_query
from mealplanner.services.validation import ensure_resident_required_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/residents", tags=["residents"])

NON_NULLABLE_FLAGS = ("high_calorie", "active")


def _get_resident_or_404(db: Session, resident_id: int) -> Resident:
    resident = db.get(Resident, resident_id)
    if not resident:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resident not found")
    return resident


def _paginate(db: Session, filters: ResidentSearchFilters, page: int, limit: int) -> ResidentListResponse:
    query = build_residents_query(db, **filters.dict())
    total = query.order_by(None).count()
    items = query.order_by(Resident.name.asc(), Resident.id.asc()).offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0
    return ResidentListResponse(
        items=[ResidentOut.from_orm(resident) for resident in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
        filters=filters,
    )


@router.get("/search", response_model=ResidentListResponse)
def search_residents(
    *,
    name: str | None = Query(default=None),
    room_number: str | None = Query(default=None, alias="roomNumber"),
    dietary_restrictions: str | None = Query(default=None, alias="dietaryRestrictions"),
    station: str | None = Query(default=None),
    table_number: str | None = Query(default=None, alias="tableNumber"),
    active: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("residents", "read")),
) -> ResidentListResponse:
    filters = ResidentSearchFilters(
        name=name,
        room_number=room_number,
        dietary_restrictions=dietary_restrictions,
        station=station,
        table_number=table_number,
        active=active,
    )
    return _paginate(db, filters, page, limit)


@router.get("", response_model=ResidentListResponse)
def list_residents(
    *,
    active: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("residents", "read")),
) -> ResidentListResponse:
    return _paginate(db, ResidentSearchFilters(active=active), page, limit)


@router.post("", response_model=ResidentOut, status_code=status.HTTP_201_CREATED)
def create_resident(
    *,
    payload: ResidentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("residents", "create")),
) -> ResidentOut:
    ensure_resident_required_fields(payload.name, payload.room_number)

    data = payload.dict()
    data["name"] = data["name"].strip()
    data["room_number"] = data["room_number"].strip()
    resident = Resident(**data)
    db.add(resident)
    db.commit()
    db.refresh(resident)

    record_data_change(db, "data_create", current_user, "residents", resident.id, {"name": resident.name})
    logger.info("resident_created", extra={"resident_id": resident.id, "created_by": current_user.id})
    return ResidentOut.from_orm(resident)


@router.get("/{resident_id}", response_model=ResidentOut)
def get_resident(
    resident_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_access("residents", "read")),
) -> ResidentOut:
    return ResidentOut.from_orm(_get_resident_or_404(db, resident_id))


@router.patch("/{resident_id}", response_model=ResidentOut)
def update_resident(
    resident_id: int,
    payload: ResidentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("residents", "update")),
) -> ResidentOut:
    resident = _get_resident_or_404(db, resident_id)
    changes = payload.dict(exclude_unset=True)

    for flag in NON_NULLABLE_FLAGS:
        if flag in changes and changes[flag] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{flag} cannot be null")

    # Required fields may be omitted from a patch but never cleared
    ensure_resident_required_fields(
        changes.get("name", resident.name),
        changes.get("room_number", resident.room_number),
    )
    for field, value in changes.items():
        if field in ("name", "room_number"):
            value = value.strip()
        elif field == "dietary_restrictions" and value is None:
            value = []
        setattr(resident, field, value)

    db.commit()
    db.refresh(resident)

    record_data_change(db, "data_update", current_user, "residents", resident.id, {"fields": sorted(changes)})
    return ResidentOut.from_orm(resident)


@router.delete("/{resident_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resident(
    resident_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("residents", "delete")),
) -> Response:
    resident = _get_resident_or_404(db, resident_id)
    has_orders = db.query(MealOrder.id).filter(MealOrder.resident_id == resident.id).first() is not None
    if has_orders:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Resident has meal orders; deactivate the resident instead",
        )

    db.delete(resident)
    db.commit()
    record_data_change(db, "data_delete", current_user, "residents", resident_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
