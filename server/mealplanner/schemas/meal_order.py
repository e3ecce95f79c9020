from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

MealTypeLiteral = Literal["breakfast", "lunch", "dinner"]
OrderStatusLiteral = Literal["pending", "prepared", "completed"]

BreakfastBread = Literal["brötchen", "vollkornbrötchen", "graubrot", "vollkornbrot", "weißbrot", "knäckebrot"]
DinnerBread = Literal["graubrot", "vollkornbrot", "weißbrot", "knäckebrot"]
BreadPreparation = Literal["geschnitten", "geschmiert"]
BreakfastSpread = Literal["butter", "margarine", "konfitüre", "honig", "käse", "wurst"]
DinnerSpread = Literal["butter", "margarine"]
BreakfastBeverage = Literal["kaffee", "tee", "milch_heiß", "milch_kalt"]
DinnerBeverage = Literal["tee", "kakao", "milch_heiß", "milch_kalt"]
BreakfastAddition = Literal["zucker", "süßstoff", "kaffeesahne"]
DinnerAddition = Literal["zucker", "süßstoff"]
PortionSize = Literal["small", "large", "vegetarian"]
SpecialPreparation = Literal["passierte_kost", "passiertes_fleisch", "geschnittenes_fleisch", "kartoffelbrei"]
LunchRestriction = Literal["ohne_fisch", "fingerfood", "nur_süß"]


class BreakfastOptions(BaseModel):
    follows_plan: bool = False
    bread_items: List[BreakfastBread] = Field(default_factory=list)
    bread_preparation: List[BreadPreparation] = Field(default_factory=list)
    spreads: List[BreakfastSpread] = Field(default_factory=list)
    porridge: bool = False
    beverages: List[BreakfastBeverage] = Field(default_factory=list)
    additions: List[BreakfastAddition] = Field(default_factory=list)


class LunchOptions(BaseModel):
    portion_size: Optional[PortionSize] = None
    soup: bool = False
    dessert: bool = False
    special_preparations: List[SpecialPreparation] = Field(default_factory=list)
    restrictions: List[LunchRestriction] = Field(default_factory=list)


class DinnerOptions(BaseModel):
    follows_plan: bool = False
    bread_items: List[DinnerBread] = Field(default_factory=list)
    bread_preparation: List[BreadPreparation] = Field(default_factory=list)
    spreads: List[DinnerSpread] = Field(default_factory=list)
    soup: bool = False
    porridge: bool = False
    no_fish: bool = False
    beverages: List[DinnerBeverage] = Field(default_factory=list)
    additions: List[DinnerAddition] = Field(default_factory=list)


class MealOrderCreate(BaseModel):
    resident_id: int = Field(..., ge=1)
    date: date
    meal_type: MealTypeLiteral
    urgent: bool = False
    breakfast_options: Optional[BreakfastOptions] = None
    lunch_options: Optional[LunchOptions] = None
    dinner_options: Optional[DinnerOptions] = None
    special_notes: Optional[str] = None


class MealOrderUpdate(BaseModel):
    version: Optional[int] = Field(None, ge=1)
    status: Optional[OrderStatusLiteral] = None
    urgent: Optional[bool] = None
    breakfast_options: Optional[BreakfastOptions] = None
    lunch_options: Optional[LunchOptions] = None
    dinner_options: Optional[DinnerOptions] = None
    special_notes: Optional[str] = None


class ResidentSummary(BaseModel):
    id: int
    name: str
    room_number: str
    active: bool

    class Config:
        from_attributes = True


class MealOrderOut(BaseModel):
    id: int
    resident_id: int
    resident: Optional[ResidentSummary] = None
    date: date
    meal_type: MealTypeLiteral
    status: OrderStatusLiteral
    urgent: bool
    version: int
    breakfast_options: Optional[BreakfastOptions] = None
    lunch_options: Optional[LunchOptions] = None
    dinner_options: Optional[DinnerOptions] = None
    special_notes: Optional[str] = None
    prepared_at: Optional[datetime] = None
    prepared_by_id: Optional[int] = None
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MealOrderListResponse(BaseModel):
    items: List[MealOrderOut]
    total: int
    page: int
    limit: int
    total_pages: int


class MealOrderConflictResolution(BaseModel):
    merged_data: MealOrderUpdate


class ConflictResolutionOut(BaseModel):
    success: bool
    message: str
    resolved_document: MealOrderOut
