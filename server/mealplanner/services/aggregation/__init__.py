"""Ingredient aggregation for the kitchen.

Each pending or prepared order contributes one unit for every option it
selected in the option group of the requested meal type. List entries count
under their own value; flags such as ``porridge`` or ``soup`` count under a
fixed name. The result is a shopping-list style tally.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from mealplanner.models.meal_order import AGGREGATABLE_STATUSES, MEAL_TYPES

UNIT = "count"

CATEGORY_VOCABULARY: dict[str, dict[str, tuple[str, ...]]] = {
    "breakfast": {
        "bread": ("brötchen", "vollkornbrötchen", "graubrot", "vollkornbrot", "weißbrot", "knäckebrot"),
        "preparation": ("geschnitten", "geschmiert"),
        "spread": ("butter", "margarine", "konfitüre", "honig", "käse", "wurst"),
        "beverage": ("kaffee", "tee", "milch_heiß", "milch_kalt"),
        "addition": ("zucker", "süßstoff", "kaffeesahne"),
        "porridge": ("porridge",),
    },
    "lunch": {
        "portion": ("small", "large", "vegetarian"),
        "preparation": ("passierte_kost", "passiertes_fleisch", "geschnittenes_fleisch", "kartoffelbrei"),
        "restriction": ("ohne_fisch", "fingerfood", "nur_süß"),
        "soup": ("soup",),
        "dessert": ("dessert",),
    },
    "dinner": {
        "bread": ("graubrot", "vollkornbrot", "weißbrot", "knäckebrot"),
        "preparation": ("geschmiert", "geschnitten"),
        "spread": ("butter", "margarine"),
        "beverage": ("tee", "kakao", "milch_heiß", "milch_kalt"),
        "addition": ("zucker", "süßstoff"),
        "soup": ("soup",),
        "porridge": ("porridge",),
        "restriction": ("no_fish",),
    },
}


@dataclass
class IngredientSummary:
    name: str
    category: str
    quantity: int
    unit: str = UNIT


@dataclass
class AggregationResult:
    meal_type: str
    quantities: Counter = field(default_factory=Counter)
    total_orders: int = 0

    def summaries(self) -> list[IngredientSummary]:
        return [
            IngredientSummary(
                name=name,
                category=categorize_ingredient(self.meal_type, name),
                quantity=quantity,
            )
            for name, quantity in self.quantities.items()
        ]


def categorize_ingredient(meal_type: str, name: str) -> str:
    for category, names in CATEGORY_VOCABULARY.get(meal_type, {}).items():
        if name in names:
            return category
    return "other"


def _count_items(counts: Counter, items: Iterable[str] | None) -> None:
    if items:
        counts.update(items)


def _count_flag(counts: Counter, options: Mapping[str, Any], flag: str, name: str | None = None) -> None:
    if options.get(flag):
        counts[name or flag] += 1


def count_breakfast_options(counts: Counter, options: Mapping[str, Any]) -> None:
    for key in ("bread_items", "bread_preparation", "spreads", "beverages", "additions"):
        _count_items(counts, options.get(key))
    _count_flag(counts, options, "porridge")


def count_lunch_options(counts: Counter, options: Mapping[str, Any]) -> None:
    portion_size = options.get("portion_size")
    if portion_size:
        counts[portion_size] += 1
    _count_flag(counts, options, "soup")
    _count_flag(counts, options, "dessert")
    _count_items(counts, options.get("special_preparations"))
    # Restrictions are informational but the kitchen tallies them too
    _count_items(counts, options.get("restrictions"))


def count_dinner_options(counts: Counter, options: Mapping[str, Any]) -> None:
    for key in ("bread_items", "bread_preparation", "spreads", "beverages", "additions"):
        _count_items(counts, options.get(key))
    _count_flag(counts, options, "soup")
    _count_flag(counts, options, "porridge")
    _count_flag(counts, options, "no_fish")


OPTION_COUNTERS: dict[str, Callable[[Counter, Mapping[str, Any]], None]] = {
    "breakfast": count_breakfast_options,
    "lunch": count_lunch_options,
    "dinner": count_dinner_options,
}


def ensure_meal_type(meal_type: str) -> str:
    if meal_type not in MEAL_TYPES:
        raise ValueError(f"Invalid meal type '{meal_type}'. Must be one of: {', '.join(MEAL_TYPES)}")
    return meal_type


def aggregate_ingredients(orders: Iterable[Any], meal_type: str) -> AggregationResult:
    """Tally the option selections of an already fetched batch of orders.

    ``orders`` may be ORM instances or rows; anything exposing ``status`` and
    ``<meal_type>_options`` attributes works. Orders outside the pending and
    prepared states are ignored entirely.
    """

    ensure_meal_type(meal_type)
    count_options = OPTION_COUNTERS[meal_type]
    result = AggregationResult(meal_type=meal_type)
    for order in orders:
        if order.status not in AGGREGATABLE_STATUSES:
            continue
        result.total_orders += 1
        options = getattr(order, f"{meal_type}_options", None)
        if options:
            count_options(result.quantities, options)
    return result


def aggregate_breakfast_ingredients(orders: Iterable[Any]) -> list[IngredientSummary]:
    return aggregate_ingredients(orders, "breakfast").summaries()


def aggregate_lunch_ingredients(orders: Iterable[Any]) -> list[IngredientSummary]:
    return aggregate_ingredients(orders, "lunch").summaries()


def aggregate_dinner_ingredients(orders: Iterable[Any]) -> list[IngredientSummary]:
    return aggregate_ingredients(orders, "dinner").summaries()
