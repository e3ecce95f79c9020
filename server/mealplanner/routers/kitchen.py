from __future__ import annotations

import logging
from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from mealplanner.auth.deps import require_policy
from mealplanner.core.db import get_db
from mealplanner.models.alert import Alert
from mealplanner.models.meal_order import MEAL_TYPES, MealOrder
from mealplanner.models.user import User
from mealplanner.schemas.alert import AlertOut
from mealplanner.schemas.kitchen import (
    AggregationResponse,
    DashboardResponse,
    DashboardSummary,
    IngredientSummaryOut,
)
from mealplanner.schemas.meal_order import MealOrderOut
from mealplanner.services.aggregation import IngredientSummary, aggregate_ingredients
from mealplanner.services.aggregation.optimized import aggregate_ingredients_optimized

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/kitchen", tags=["kitchen"])


def _ensure_meal_type(meal_type: str) -> None:
    if meal_type not in MEAL_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid meal type. Must be one of: {', '.join(MEAL_TYPES)}",
        )


def _ingredients_out(summaries: list[IngredientSummary]) -> list[IngredientSummaryOut]:
    ordered = sorted(summaries, key=lambda item: (item.category, item.name))
    return [IngredientSummaryOut(**vars(item)) for item in ordered]


@router.get("/aggregate-ingredients", response_model=AggregationResponse)
def aggregate(
    *,
    day: date = Query(..., alias="date"),
    meal_type: str = Query(..., alias="mealType"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_policy("kitchen.access")),
) -> AggregationResponse:
    _ensure_meal_type(meal_type)
    paged = aggregate_ingredients_optimized(db, day, meal_type, limit=limit, page=page)
    logger.info(
        "ingredients_aggregated",
        extra={"date": day.isoformat(), "meal_type": meal_type, "orders": paged.total_orders, "page": page},
    )
    return AggregationResponse(
        date=day,
        meal_type=meal_type,
        total_orders=paged.total_orders,
        page=paged.page,
        total_pages=paged.total_pages,
        ingredients=_ingredients_out(paged.ingredients),
    )


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    *,
    day: date = Query(..., alias="date"),
    meal_type: str = Query(..., alias="mealType"),
    db: Session = Depends(get_db),
    _: User = Depends(require_policy("kitchen.access")),
) -> DashboardResponse:
    _ensure_meal_type(meal_type)
    orders = (
        db.query(MealOrder)
        .options(joinedload(MealOrder.resident))
        .filter(MealOrder.date == day, MealOrder.meal_type == meal_type)
        .order_by(MealOrder.urgent.desc(), MealOrder.id.asc())
        .all()
    )
    statuses = Counter(order.status for order in orders)
    alerts = (
        db.query(Alert)
        .join(Alert.meal_order)
        .filter(
            MealOrder.date == day,
            MealOrder.meal_type == meal_type,
            Alert.acknowledged.is_(False),
        )
        .order_by(Alert.created_at.desc())
        .all()
    )

    return DashboardResponse(
        date=day,
        meal_type=meal_type,
        summary=DashboardSummary(
            total_orders=len(orders),
            pending_orders=statuses["pending"],
            prepared_orders=statuses["prepared"],
            completed_orders=statuses["completed"],
        ),
        ingredients=_ingredients_out(aggregate_ingredients(orders, meal_type).summaries()),
        orders=[MealOrderOut.from_orm(order) for order in orders],
        alerts=[AlertOut.from_orm(alert) for alert in alerts],
    )
