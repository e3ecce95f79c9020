from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ReportFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    meal_type: Optional[str] = None
    resident_id: Optional[int] = None
    status: Optional[str] = None


class MealOrderReportRow(BaseModel):
    id: int
    resident_name: str
    resident_room: str
    date: date
    meal_type: str
    status: str
    urgent: bool
    ingredients: List[str] = Field(default_factory=list)
    special_notes: Optional[str] = None
    prepared_at: Optional[datetime] = None
    prepared_by: Optional[str] = None
    created_at: datetime


class ReportSummary(BaseModel):
    total_orders: int
    by_meal_type: Dict[str, int]
    by_status: Dict[str, int]
    by_ingredient: Dict[str, int]


class MealOrderReport(BaseModel):
    data: List[MealOrderReportRow]
    summary: ReportSummary
    filters: ReportFilters
    generated_at: datetime


class TrendPoint(BaseModel):
    date: date
    count: int


class IngredientTrend(BaseModel):
    ingredient: str
    data_points: List[TrendPoint]


class AnalyticsResponse(BaseModel):
    start_date: date
    end_date: date
    meal_type: str
    trends: List[IngredientTrend]
    generated_at: datetime
