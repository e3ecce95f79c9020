from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class VersionedRecordOut(BaseModel):
    id: int
    collection_name: str
    document_id: str
    version: int
    snapshot: dict[str, Any]
    change_type: str
    changed_fields: List[str]
    changed_by_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VersionedRecordListResponse(BaseModel):
    items: List[VersionedRecordOut]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
