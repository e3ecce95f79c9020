"""Version history for meal orders.

Every create, update and delete of a meal order appends a
:class:`VersionedRecord`. Records are added to the caller's session and are
committed together with the change they describe.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func
from sqlalchemy.orm import Session

from mealplanner.models.meal_order import MealOrder
from mealplanner.models.user import User
from mealplanner.models.versioned_record import VersionedRecord

logger = logging.getLogger(__name__)

MEAL_ORDERS_COLLECTION = "meal-orders"

MEAL_ORDER_TRACKED_FIELDS = (
    "resident_id",
    "date",
    "meal_type",
    "status",
    "urgent",
    "breakfast_options",
    "lunch_options",
    "dinner_options",
    "special_notes",
    "prepared_at",
    "prepared_by_id",
)

_SNAPSHOT_FIELDS = ("id", "version", *MEAL_ORDER_TRACKED_FIELDS, "created_by_id", "created_at", "updated_at")


def snapshot_meal_order(order: MealOrder) -> Dict[str, Any]:
    """JSON-ready copy of the order as it is right now."""

    return jsonable_encoder({field: getattr(order, field) for field in _SNAPSHOT_FIELDS})


def changed_fields(
    before: Dict[str, Any],
    after: Dict[str, Any],
    fields: Iterable[str] = MEAL_ORDER_TRACKED_FIELDS,
) -> list[str]:
    return [field for field in fields if before.get(field) != after.get(field)]


def next_version(db: Session, collection_name: str, document_id: Any) -> int:
    latest = (
        db.query(func.max(VersionedRecord.version))
        .filter(
            VersionedRecord.collection_name == collection_name,
            VersionedRecord.document_id == str(document_id),
        )
        .scalar()
    )
    return (latest or 0) + 1


def record_version(
    db: Session,
    collection_name: str,
    document_id: Any,
    change_type: str,
    snapshot: Dict[str, Any],
    *,
    fields: list[str] | None = None,
    user: User | None = None,
) -> VersionedRecord:
    record = VersionedRecord(
        collection_name=collection_name,
        document_id=str(document_id),
        version=next_version(db, collection_name, document_id),
        snapshot=snapshot,
        change_type=change_type,
        changed_fields=fields or [],
        changed_by_id=user.id if user is not None else None,
    )
    db.add(record)
    logger.debug(
        "version_recorded",
        extra={
            "collection": collection_name,
            "document_id": record.document_id,
            "version": record.version,
            "change_type": change_type,
        },
    )
    return record


def record_meal_order_created(db: Session, order: MealOrder, user: User | None) -> VersionedRecord:
    return record_version(db, MEAL_ORDERS_COLLECTION, order.id, "create", snapshot_meal_order(order), user=user)


def record_meal_order_updated(
    db: Session,
    order: MealOrder,
    previous_snapshot: Dict[str, Any],
    user: User | None,
) -> VersionedRecord:
    current = snapshot_meal_order(order)
    return record_version(
        db,
        MEAL_ORDERS_COLLECTION,
        order.id,
        "update",
        previous_snapshot,
        fields=changed_fields(previous_snapshot, current),
        user=user,
    )


def record_meal_order_deleted(db: Session, order: MealOrder, user: User | None) -> VersionedRecord:
    return record_version(db, MEAL_ORDERS_COLLECTION, order.id, "delete", snapshot_meal_order(order), user=user)
