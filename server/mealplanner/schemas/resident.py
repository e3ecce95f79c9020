from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator


def _clean_restrictions(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    return [item.strip() for item in value if item and item.strip()]


class ResidentBase(BaseModel):
    name: str = Field(..., max_length=255)
    room_number: str = Field(..., max_length=50)
    table_number: Optional[str] = Field(None, max_length=50)
    station: Optional[str] = Field(None, max_length=120)
    dietary_restrictions: List[str] = Field(default_factory=list)
    aversions: Optional[str] = None
    special_notes: Optional[str] = None
    high_calorie: bool = False
    active: bool = True

    @validator("dietary_restrictions")
    def validate_restrictions(cls, value: List[str]) -> List[str]:
        return _clean_restrictions(value) or []


class ResidentCreate(ResidentBase):
    pass


class ResidentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    room_number: Optional[str] = Field(None, max_length=50)
    table_number: Optional[str] = Field(None, max_length=50)
    station: Optional[str] = Field(None, max_length=120)
    dietary_restrictions: Optional[List[str]] = None
    aversions: Optional[str] = None
    special_notes: Optional[str] = None
    high_calorie: Optional[bool] = None
    active: Optional[bool] = None

    @validator("dietary_restrictions")
    def validate_restrictions(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_restrictions(value)


class ResidentOut(BaseModel):
    id: int
    name: str
    room_number: str
    table_number: Optional[str]
    station: Optional[str]
    dietary_restrictions: List[str]
    aversions: Optional[str]
    special_notes: Optional[str]
    high_calorie: bool
    active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ResidentSearchFilters(BaseModel):
    name: Optional[str] = None
    room_number: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    station: Optional[str] = None
    table_number: Optional[str] = None
    active: Optional[bool] = None


class ResidentListResponse(BaseModel):
    items: List[ResidentOut]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    filters: Optional[ResidentSearchFilters] = None
