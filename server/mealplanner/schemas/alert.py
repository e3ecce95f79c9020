from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class AlertOut(BaseModel):
    id: int
    meal_order_id: int
    message: str
    severity: str
    acknowledged: bool
    acknowledged_by_id: Optional[int] = None
    acknowledged_at: Optional[datetime] = None
    escalated_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AlertListResponse(BaseModel):
    items: List[AlertOut]
    total: int


class EscalationResponse(BaseModel):
    success: bool = True
    escalated_count: int
    message: str
