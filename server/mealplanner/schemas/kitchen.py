from datetime import date
from typing import List

from pydantic import BaseModel

from mealplanner.schemas.alert import AlertOut
from mealplanner.schemas.meal_order import MealOrderOut


class IngredientSummaryOut(BaseModel):
    name: str
    category: str
    quantity: int
    unit: str = "count"


class AggregationResponse(BaseModel):
    date: date
    meal_type: str
    total_orders: int
    page: int = 1
    total_pages: int = 1
    ingredients: List[IngredientSummaryOut]


class DashboardSummary(BaseModel):
    total_orders: int
    pending_orders: int
    prepared_orders: int
    completed_orders: int


class DashboardResponse(BaseModel):
    date: date
    meal_type: str
    summary: DashboardSummary
    ingredients: List[IngredientSummaryOut]
    orders: List[MealOrderOut]
    alerts: List[AlertOut]
