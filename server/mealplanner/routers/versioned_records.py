from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mealplanner.auth.deps import require_access
from mealplanner.core.db import get_db
from mealplanner.models.user import User
from mealplanner.models.versioned_record import CHANGE_TYPES, VersionedRecord
from mealplanner.schemas.versioned_record import VersionedRecordListResponse, VersionedRecordOut

router = APIRouter(prefix="/api/versioned-records", tags=["versioned-records"])


@router.get("", response_model=VersionedRecordListResponse)
def list_versioned_records(
    *,
    collection_name: str | None = Query(default=None, alias="collection"),
    document_id: str | None = Query(default=None, alias="documentId"),
    change_type: str | None = Query(default=None, alias="changeType"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("versioned-records", "read")),
) -> VersionedRecordListResponse:
    query = db.query(VersionedRecord)
    if collection_name:
        query = query.filter(VersionedRecord.collection_name == collection_name)
    if document_id:
        query = query.filter(VersionedRecord.document_id == document_id)
    if change_type:
        if change_type not in CHANGE_TYPES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid change type filter")
        query = query.filter(VersionedRecord.change_type == change_type)

    total = query.order_by(None).count()
    items = (
        query.order_by(VersionedRecord.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit) if total else 0
    return VersionedRecordListResponse(
        items=[VersionedRecordOut.from_orm(record) for record in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


@router.get("/{record_id}", response_model=VersionedRecordOut)
def get_versioned_record(
    record_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_access("versioned-records", "read")),
) -> VersionedRecordOut:
    record = db.get(VersionedRecord, record_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Versioned record not found")
    return VersionedRecordOut.from_orm(record)
