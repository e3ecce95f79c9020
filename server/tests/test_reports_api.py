from __future__ import annotations

import codecs
import csv
import io
from datetime import date

import pytest

from mealplanner.models.meal_order import MealOrder
from mealplanner.models.resident import Resident


@pytest.fixture()
def report_orders(db_session, sample_resident, kitchen_user):
    other = Resident(name="Otto Lang", room_number="301")
    db_session.add(other)
    db_session.commit()
    orders = [
        MealOrder(
            resident_id=sample_resident.id,
            date=date(2026, 3, 1),
            meal_type="breakfast",
            status="completed",
            breakfast_options={"bread_items": ["brötchen"], "spreads": ["butter"], "porridge": True},
            special_notes='Warm, "not hot"',
        ),
        MealOrder(
            resident_id=sample_resident.id,
            date=date(2026, 3, 2),
            meal_type="lunch",
            lunch_options={"portion_size": "large", "soup": True},
            urgent=True,
        ),
        MealOrder(
            resident_id=other.id,
            date=date(2026, 3, 3),
            meal_type="lunch",
            status="prepared",
            lunch_options={"portion_size": "large", "dessert": True},
            prepared_by_id=kitchen_user.id,
        ),
    ]
    db_session.add_all(orders)
    db_session.commit()
    return orders


def _csv_rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


def test_report_lists_orders_with_summary(client, authorize, caregiver_user, report_orders):
    authorize(caregiver_user)
    response = client.get("/api/reports/meal-orders")
    assert response.status_code == 200, response.text
    body = response.json()

    breakfast, lunch, prepared_lunch = report_orders
    assert [row["id"] for row in body["data"]] == [prepared_lunch.id, lunch.id, breakfast.id]
    assert body["data"][2]["ingredients"] == ["brötchen", "butter", "porridge"]
    assert body["data"][2]["resident_room"] == "104"
    assert body["data"][0]["resident_name"] == "Otto Lang"
    assert body["data"][0]["prepared_by"] == "Kitchen"
    assert body["data"][1]["urgent"] is True

    summary = body["summary"]
    assert summary["total_orders"] == 3
    assert summary["by_meal_type"] == {"breakfast": 1, "lunch": 2}
    assert summary["by_status"] == {"completed": 1, "pending": 1, "prepared": 1}
    assert summary["by_ingredient"]["large"] == 2
    assert summary["by_ingredient"]["porridge"] == 1


def test_report_filters_combine(client, authorize, kitchen_user, sample_resident, report_orders):
    authorize(kitchen_user)

    response = client.get("/api/reports/meal-orders", params={"mealType": "lunch", "status": "pending"})
    body = response.json()
    assert [row["id"] for row in body["data"]] == [report_orders[1].id]
    assert body["filters"]["meal_type"] == "lunch"
    assert body["filters"]["status"] == "pending"

    response = client.get("/api/reports/meal-orders", params={"residentId": sample_resident.id})
    assert response.json()["summary"]["total_orders"] == 2

    response = client.get("/api/reports/meal-orders", params={"startDate": "2026-03-02", "endDate": "2026-03-02"})
    assert response.json()["summary"]["by_ingredient"] == {"large": 1, "soup": 1}


@pytest.mark.parametrize(
    "params",
    [
        {"mealType": "brunch"},
        {"status": "cancelled"},
        {"format": "pdf"},
        {"startDate": "2026-03-05", "endDate": "2026-03-01"},
    ],
)
def test_report_rejects_bad_parameters(client, authorize, admin_user, params):
    authorize(admin_user)
    assert client.get("/api/reports/meal-orders", params=params).status_code == 400


def test_csv_export(client, authorize, admin_user, report_orders):
    authorize(admin_user)
    response = client.get("/api/reports/meal-orders", params={"format": "csv"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith('attachment; filename="meal-orders-report-')

    rows = _csv_rows(response.text)
    assert rows[0][:3] == ["ID", "Resident Name", "Room"]
    assert len(rows) == 4
    breakfast_row = rows[3]
    assert breakfast_row[1] == "Margarete Vogel"
    assert breakfast_row[6] == "No"
    assert breakfast_row[7] == "brötchen; butter; porridge"
    assert breakfast_row[8] == 'Warm, "not hot"'
    assert rows[2][6] == "Yes"


def test_excel_export_matches_csv_with_bom(client, authorize, admin_user, report_orders):
    authorize(admin_user)
    csv_response = client.get("/api/reports/meal-orders", params={"format": "csv"})
    excel_response = client.get("/api/reports/meal-orders", params={"format": "excel"})
    assert excel_response.status_code == 200
    assert excel_response.content.startswith(codecs.BOM_UTF8)

    excel_text = excel_response.content[len(codecs.BOM_UTF8):].decode("utf-8")
    assert _csv_rows(excel_text) == _csv_rows(csv_response.text)


def test_empty_export_has_only_headers(client, authorize, admin_user):
    authorize(admin_user)
    response = client.get("/api/reports/meal-orders", params={"format": "csv"})
    assert len(_csv_rows(response.text)) == 1


def test_analytics_trends(client, authorize, caregiver_user, report_orders):
    authorize(caregiver_user)
    response = client.get(
        "/api/reports/analytics",
        params={"startDate": "2026-03-01", "endDate": "2026-03-03", "mealType": "lunch"},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["meal_type"] == "lunch"
    assert [trend["ingredient"] for trend in body["trends"]] == ["dessert", "large", "soup"]

    trends = {trend["ingredient"]: trend["data_points"] for trend in body["trends"]}
    assert trends["large"] == [{"date": "2026-03-02", "count": 1}, {"date": "2026-03-03", "count": 1}]
    assert trends["dessert"] == [{"date": "2026-03-02", "count": 0}, {"date": "2026-03-03", "count": 1}]

    response = client.get("/api/reports/analytics", params={"startDate": "2026-03-01", "endDate": "2026-03-01"})
    assert response.json()["meal_type"] == "all"
    assert [trend["ingredient"] for trend in response.json()["trends"]] == ["brötchen", "butter", "porridge"]


@pytest.mark.parametrize(
    "params",
    [
        {"startDate": "2026-03-01"},
        {"startDate": "2026-03-01", "endDate": "03/05/2026"},
        {"startDate": "2026-03-05", "endDate": "2026-03-01"},
        {"startDate": "2026-03-01", "endDate": "2026-03-05", "mealType": "brunch"},
    ],
)
def test_analytics_rejects_bad_parameters(client, authorize, admin_user, params):
    authorize(admin_user)
    assert client.get("/api/reports/analytics", params=params).status_code == 400
