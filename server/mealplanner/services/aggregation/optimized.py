"""Aggregation with the slot filter pushed into SQL.

Only the id, status and the option column of the requested meal type are
selected, and orders are read one page at a time.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Query, Session

from mealplanner.core.config import settings
from mealplanner.models.meal_order import AGGREGATABLE_STATUSES, MealOrder
from mealplanner.services.aggregation import (
    OPTION_COUNTERS,
    AggregationResult,
    IngredientSummary,
    ensure_meal_type,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


@dataclass
class PagedAggregation:
    result: AggregationResult
    page: int
    total_pages: int
    ingredients: list[IngredientSummary] = field(default_factory=list)

    @property
    def total_orders(self) -> int:
        return self.result.total_orders


def _slot_query(db: Session, day: date, meal_type: str) -> Query:
    options_column = getattr(MealOrder, f"{meal_type}_options")
    return db.query(MealOrder.id, MealOrder.status, options_column.label("options")).filter(
        MealOrder.date == day,
        MealOrder.meal_type == meal_type,
        MealOrder.status.in_(AGGREGATABLE_STATUSES),
    )


def aggregate_ingredients_optimized(
    db: Session,
    day: date,
    meal_type: str,
    limit: int | None = None,
    page: int = 1,
) -> PagedAggregation:
    ensure_meal_type(meal_type)
    limit = limit or settings.AGGREGATION_PAGE_LIMIT
    if limit < 1 or page < 1:
        raise ValueError("Page and limit must be positive")

    query = _slot_query(db, day, meal_type)
    total = query.order_by(None).count()
    rows = query.order_by(MealOrder.id.asc()).offset((page - 1) * limit).limit(limit).all()

    counts: Counter = Counter()
    count_options = OPTION_COUNTERS[meal_type]
    for row in rows:
        if row.options:
            count_options(counts, row.options)

    result = AggregationResult(meal_type=meal_type, quantities=counts, total_orders=total)
    return PagedAggregation(
        result=result,
        page=page,
        total_pages=max(1, math.ceil(total / limit)),
        ingredients=result.summaries(),
    )


def aggregate_ingredients_in_batches(
    db: Session,
    day: date,
    meal_type: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> AggregationResult:
    """Walk every page of the slot and merge the per-page tallies."""

    merged = AggregationResult(meal_type=ensure_meal_type(meal_type))
    page = 1
    while True:
        paged = aggregate_ingredients_optimized(db, day, meal_type, limit=batch_size, page=page)
        merged.quantities.update(paged.result.quantities)
        merged.total_orders = paged.total_orders
        if page >= paged.total_pages:
            break
        page += 1
    logger.debug(
        "ingredients_aggregated_in_batches",
        extra={"meal_type": meal_type, "date": day.isoformat(), "pages": page, "orders": merged.total_orders},
    )
    return merged
