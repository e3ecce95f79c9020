from __future__ import annotations

import csv
import io
import logging
from datetime import date
from typing import Iterable

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from mealplanner.auth.deps import require_policy
from mealplanner.core.db import get_db
from mealplanner.core.time import now_utc
from mealplanner.models.meal_order import MEAL_TYPES, ORDER_STATUSES
from mealplanner.models.user import User
from mealplanner.schemas.report import AnalyticsResponse, MealOrderReport, MealOrderReportRow, ReportFilters
from mealplanner.services.reports import calculate_ingredient_trends, generate_meal_order_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])

REPORT_FORMATS = ("json", "csv", "excel")
EXCEL_BOM = "\ufeff"

REPORT_EXPORT_HEADERS = [
    "ID",
    "Resident Name",
    "Room",
    "Date",
    "Meal Type",
    "Status",
    "Urgent",
    "Ingredients",
    "Special Notes",
    "Prepared At",
    "Prepared By",
    "Created At",
]


def _format_report_row(row: MealOrderReportRow) -> list[str]:
    return [
        str(row.id),
        row.resident_name,
        row.resident_room,
        row.date.isoformat(),
        row.meal_type,
        row.status,
        "Yes" if row.urgent else "No",
        "; ".join(row.ingredients),
        row.special_notes or "",
        row.prepared_at.isoformat() if row.prepared_at else "",
        row.prepared_by or "",
        row.created_at.isoformat(),
    ]


def _stream_report_csv(rows: Iterable[list[str]], prefix: str = "") -> Iterable[str]:
    buffer = io.StringIO()
    buffer.write(prefix)
    writer = csv.writer(buffer)
    writer.writerow(REPORT_EXPORT_HEADERS)
    yield buffer.getvalue()
    buffer.seek(0)
    buffer.truncate(0)
    for row in rows:
        writer.writerow(row)
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)


def _ensure_meal_type(meal_type: str | None) -> None:
    if meal_type and meal_type not in MEAL_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid meal type. Must be breakfast, lunch, or dinner.",
        )


@router.get("/meal-orders", response_model=MealOrderReport)
def meal_orders_report(
    *,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    meal_type: str | None = Query(default=None, alias="mealType"),
    resident_id: int | None = Query(default=None, alias="residentId"),
    status_filter: str | None = Query(default=None, alias="status"),
    export_format: str = Query(default="json", alias="format"),
    db: Session = Depends(get_db),
    _: User = Depends(require_policy("reports.access")),
):
    _ensure_meal_type(meal_type)
    if status_filter and status_filter not in ORDER_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid status. Must be pending, prepared, or completed.",
        )
    if export_format not in REPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid format. Must be json, csv, or excel.",
        )

    filters = ReportFilters(
        start_date=start_date,
        end_date=end_date,
        meal_type=meal_type,
        resident_id=resident_id,
        status=status_filter,
    )
    report = generate_meal_order_report(db, filters)
    if export_format == "json":
        return report

    rows = (_format_report_row(row) for row in report.data)
    if export_format == "excel":
        # Excel detects UTF-8 CSV files by the byte order mark
        response = StreamingResponse(_stream_report_csv(rows, EXCEL_BOM), media_type="text/csv; charset=utf-8")
    else:
        response = StreamingResponse(_stream_report_csv(rows), media_type="text/csv")
    filename = f"meal-orders-report-{now_utc().date().isoformat()}.csv"
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@router.get("/analytics", response_model=AnalyticsResponse)
def analytics(
    *,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    meal_type: str | None = Query(default=None, alias="mealType"),
    db: Session = Depends(get_db),
    _: User = Depends(require_policy("reports.access")),
) -> AnalyticsResponse:
    _ensure_meal_type(meal_type)
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="startDate must be before or equal to endDate",
        )

    trends = calculate_ingredient_trends(db, start_date, end_date, meal_type)
    logger.info(
        "ingredient_trends_calculated",
        extra={"start_date": start_date.isoformat(), "end_date": end_date.isoformat(), "trends": len(trends)},
    )
    return AnalyticsResponse(
        start_date=start_date,
        end_date=end_date,
        meal_type=meal_type or "all",
        trends=trends,
        generated_at=now_utc(),
    )
