from __future__ import annotations

import logging
import math
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session, joinedload

from mealplanner.auth.deps import require_access
from mealplanner.core.db import get_db
from mealplanner.core.time import now_utc
from mealplanner.models.meal_order import MealOrder
from mealplanner.models.user import User
from mealplanner.policies.rbac import CAREGIVER, KITCHEN
from mealplanner.schemas.meal_order import (
    ConflictResolutionOut,
    MealOrderConflictResolution,
    MealOrderCreate,
    MealOrderListResponse,
    MealOrderOut,
    MealOrderUpdate,
)
from mealplanner.services.alerts import create_urgent_order_alert
from mealplanner.services.audit import record_data_change, record_denied_access
from mealplanner.services.meal_orders_query import build_meal_orders_query
from mealplanner.services.validation import (
    ensure_caregiver_can_modify,
    ensure_meal_options_present,
    ensure_resident_active,
    ensure_unique_order,
    ensure_version_matches,
)
from mealplanner.services.versioning import (
    record_meal_order_created,
    record_meal_order_deleted,
    record_meal_order_updated,
    snapshot_meal_order,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meal-orders", tags=["meal-orders"])

OPTION_FIELDS = ("breakfast_options", "lunch_options", "dinner_options")
KITCHEN_EDITABLE_FIELDS = {"status", "version"}
NON_NULL_FIELDS = ("status", "urgent")


def _get_order_or_404(db: Session, order_id: int) -> MealOrder:
    order = (
        db.query(MealOrder)
        .options(joinedload(MealOrder.resident))
        .filter(MealOrder.id == order_id)
        .first()
    )
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meal order not found")
    return order


def _paginate(query, page: int, limit: int) -> MealOrderListResponse:
    total = query.order_by(None).count()
    items = (
        query.options(joinedload(MealOrder.resident))
        .order_by(MealOrder.date.desc(), MealOrder.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return MealOrderListResponse(
        items=[MealOrderOut.from_orm(order) for order in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )


@router.get("/search", response_model=MealOrderListResponse)
def search_meal_orders(
    *,
    resident_name: str | None = Query(default=None, alias="residentName"),
    room_number: str | None = Query(default=None, alias="roomNumber"),
    meal_type: str | None = Query(default=None, alias="mealType"),
    status_filter: str | None = Query(default=None, alias="status"),
    dietary_restrictions: str | None = Query(default=None, alias="dietaryRestrictions"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    urgent: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("meal-orders", "read")),
) -> MealOrderListResponse:
    query = build_meal_orders_query(
        db,
        resident_name=resident_name,
        room_number=room_number,
        meal_type=meal_type,
        status_filter=status_filter,
        dietary_restrictions=dietary_restrictions,
        start_date=start_date,
        end_date=end_date,
        urgent=urgent,
    )
    return _paginate(query, page, limit)


@router.get("", response_model=MealOrderListResponse)
def list_meal_orders(
    *,
    resident_id: int | None = Query(default=None, alias="residentId"),
    day: date | None = Query(default=None, alias="date"),
    meal_type: str | None = Query(default=None, alias="mealType"),
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("meal-orders", "read")),
) -> MealOrderListResponse:
    query = build_meal_orders_query(
        db,
        resident_id=resident_id,
        meal_type=meal_type,
        status_filter=status_filter,
        start_date=day,
        end_date=day,
    )
    return _paginate(query, page, limit)


@router.post("", response_model=MealOrderOut, status_code=status.HTTP_201_CREATED)
def create_meal_order(
    *,
    payload: MealOrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("meal-orders", "create")),
) -> MealOrderOut:
    ensure_meal_options_present(
        payload.meal_type,
        payload.breakfast_options,
        payload.lunch_options,
        payload.dinner_options,
    )
    ensure_resident_active(db, payload.resident_id, "create")
    ensure_unique_order(db, payload.resident_id, payload.date, payload.meal_type)

    order = MealOrder(
        resident_id=payload.resident_id,
        date=payload.date,
        meal_type=payload.meal_type,
        status="pending",
        urgent=payload.urgent,
        version=1,
        special_notes=payload.special_notes,
        created_by_id=current_user.id,
    )
    for field in OPTION_FIELDS:
        options = getattr(payload, field)
        setattr(order, field, options.dict() if options is not None else None)

    db.add(order)
    db.flush()
    record_meal_order_created(db, order, current_user)
    db.commit()
    db.refresh(order)

    record_data_change(
        db,
        "data_create",
        current_user,
        "meal-orders",
        order.id,
        {"resident_id": order.resident_id, "date": order.date.isoformat(), "meal_type": order.meal_type},
    )
    if order.urgent:
        create_urgent_order_alert(db, order)

    logger.info(
        "meal_order_created",
        extra={"order_id": order.id, "resident_id": order.resident_id, "urgent": order.urgent},
    )
    return MealOrderOut.from_orm(_get_order_or_404(db, order.id))


@router.get("/{order_id}", response_model=MealOrderOut)
def get_meal_order(
    order_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_access("meal-orders", "read")),
) -> MealOrderOut:
    return MealOrderOut.from_orm(_get_order_or_404(db, order_id))


def _enforce_update_rules(
    db: Session,
    order: MealOrder,
    changes: dict,
    current_user: User,
    request: Request,
) -> None:
    if current_user.role == KITCHEN:
        forbidden = set(changes) - KITCHEN_EDITABLE_FIELDS
        if forbidden:
            record_denied_access(db, current_user, "meal-orders", "update", resource_id=order.id, request=request)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Kitchen staff can only update the order status",
            )
    if current_user.role == CAREGIVER and "status" in changes:
        record_denied_access(db, current_user, "meal-orders", "update", resource_id=order.id, request=request)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only kitchen staff and admins can change the order status",
        )
    ensure_caregiver_can_modify(order, current_user.role)


def _save_changes(
    db: Session,
    order: MealOrder,
    changes: dict,
    current_user: User,
    details: dict | None = None,
) -> MealOrder:
    previous_snapshot = snapshot_meal_order(order)
    was_urgent = order.urgent
    previous_status = order.status

    for field in OPTION_FIELDS:
        if field in changes:
            setattr(order, field, changes[field])
    if "status" in changes and changes["status"] is not None:
        order.status = changes["status"]
        if order.status == "prepared" and previous_status != "prepared":
            order.prepared_at = now_utc()
            order.prepared_by_id = current_user.id
    if "urgent" in changes and changes["urgent"] is not None:
        order.urgent = changes["urgent"]
    if "special_notes" in changes:
        order.special_notes = changes["special_notes"]

    order.version = order.version + 1
    record_meal_order_updated(db, order, previous_snapshot, current_user)
    db.commit()
    db.refresh(order)

    audit_details = {"fields": sorted(changes), "previous_status": previous_status, "status": order.status}
    audit_details.update(details or {})
    record_data_change(db, "data_update", current_user, "meal-orders", order.id, audit_details)
    if order.urgent and not was_urgent:
        create_urgent_order_alert(db, order)
    return order


@router.patch("/{order_id}", response_model=MealOrderOut)
def update_meal_order(
    order_id: int,
    payload: MealOrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("meal-orders", "update")),
) -> MealOrderOut:
    order = _get_order_or_404(db, order_id)
    changes = payload.dict(exclude_unset=True)

    _enforce_update_rules(db, order, changes, current_user, request)
    ensure_version_matches(order, changes.pop("version", None))
    ensure_resident_active(db, order.resident_id, "update")

    order = _save_changes(db, order, changes, current_user)
    return MealOrderOut.from_orm(_get_order_or_404(db, order.id))


@router.post("/{order_id}/resolve-conflict", response_model=ConflictResolutionOut)
def resolve_meal_order_conflict(
    order_id: int,
    payload: MealOrderConflictResolution,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("meal-orders", "update")),
) -> ConflictResolutionOut:
    """Apply a client-merged copy of the order over the current version.

    Only fields whose merged value differs from the stored one count as
    changes, so the usual role rules apply to what actually moves.
    """

    order = _get_order_or_404(db, order_id)
    merged = payload.merged_data.dict(exclude_unset=True)
    merged.pop("version", None)
    changes = {
        field: value
        for field, value in merged.items()
        if value != getattr(order, field) and not (value is None and field in NON_NULL_FIELDS)
    }

    _enforce_update_rules(db, order, changes, current_user, request)
    ensure_resident_active(db, order.resident_id, "update")

    order = _save_changes(db, order, changes, current_user, {"conflict_resolution": True})
    logger.info(
        "meal_order_conflict_resolved",
        extra={"order_id": order.id, "version": order.version, "user_id": current_user.id},
    )
    return ConflictResolutionOut(
        success=True,
        message="Conflict resolved successfully",
        resolved_document=MealOrderOut.from_orm(_get_order_or_404(db, order.id)),
    )


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meal_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("meal-orders", "delete")),
) -> Response:
    order = _get_order_or_404(db, order_id)
    record_meal_order_deleted(db, order, current_user)
    db.delete(order)
    db.commit()
    record_data_change(db, "data_delete", current_user, "meal-orders", order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
