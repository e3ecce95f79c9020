"""Meal order reports and ingredient trends.

Reports cover every order status, unlike the kitchen aggregation which only
looks at open orders. Ingredient names are the same option values the
kitchen tallies.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Any

from sqlalchemy.orm import Session, joinedload

from mealplanner.core.config import settings
from mealplanner.core.time import now_utc
from mealplanner.models.meal_order import MealOrder
from mealplanner.schemas.report import (
    IngredientTrend,
    MealOrderReport,
    MealOrderReportRow,
    ReportFilters,
    ReportSummary,
    TrendPoint,
)
from mealplanner.services.aggregation import OPTION_COUNTERS
from mealplanner.services.meal_orders_query import build_meal_orders_query

logger = logging.getLogger(__name__)


def order_ingredients(order: Any) -> list[str]:
    options = getattr(order, f"{order.meal_type}_options", None)
    if not options:
        return []
    counts: Counter = Counter()
    OPTION_COUNTERS[order.meal_type](counts, options)
    return list(counts.elements())


def _report_row(order: MealOrder) -> MealOrderReportRow:
    resident = order.resident
    return MealOrderReportRow(
        id=order.id,
        resident_name=resident.name if resident is not None else "Unknown",
        resident_room=resident.room_number if resident is not None else "N/A",
        date=order.date,
        meal_type=order.meal_type,
        status=order.status,
        urgent=bool(order.urgent),
        ingredients=order_ingredients(order),
        special_notes=order.special_notes,
        prepared_at=order.prepared_at,
        prepared_by=order.prepared_by.name if order.prepared_by is not None else None,
        created_at=order.created_at,
    )


def generate_meal_order_report(db: Session, filters: ReportFilters) -> MealOrderReport:
    """Matching orders, newest date first, with totals over the returned rows."""

    query = build_meal_orders_query(
        db,
        resident_id=filters.resident_id,
        meal_type=filters.meal_type,
        status_filter=filters.status,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )
    orders = (
        query.options(joinedload(MealOrder.resident), joinedload(MealOrder.prepared_by))
        .order_by(MealOrder.date.desc(), MealOrder.id.desc())
        .limit(settings.REPORT_MAX_ROWS)
        .all()
    )

    rows = [_report_row(order) for order in orders]
    by_meal_type: Counter = Counter(row.meal_type for row in rows)
    by_status: Counter = Counter(row.status for row in rows)
    by_ingredient: Counter = Counter()
    for row in rows:
        by_ingredient.update(row.ingredients)

    logger.info("meal_order_report_generated", extra={"rows": len(rows), "filters": filters.dict(exclude_none=True)})
    return MealOrderReport(
        data=rows,
        summary=ReportSummary(
            total_orders=len(rows),
            by_meal_type=dict(by_meal_type),
            by_status=dict(by_status),
            by_ingredient=dict(by_ingredient),
        ),
        filters=filters,
        generated_at=now_utc(),
    )


def calculate_ingredient_trends(
    db: Session,
    start_date: date,
    end_date: date,
    meal_type: str | None = None,
) -> list[IngredientTrend]:
    """Per-ingredient counts for each day in the range that has orders.

    Every trend carries a point for each of those days, zero where the
    ingredient was not ordered. Trends are sorted by ingredient name.
    """

    query = build_meal_orders_query(db, meal_type=meal_type, start_date=start_date, end_date=end_date)
    orders = query.order_by(MealOrder.date.asc()).limit(settings.REPORT_MAX_ROWS).all()

    per_day: dict[date, Counter] = defaultdict(Counter)
    for order in orders:
        per_day[order.date].update(order_ingredients(order))

    ingredients = sorted({name for counts in per_day.values() for name in counts})
    days = sorted(per_day)
    return [
        IngredientTrend(
            ingredient=name,
            data_points=[TrendPoint(date=day, count=per_day[day][name]) for day in days],
        )
        for name in ingredients
    ]
