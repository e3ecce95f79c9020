from __future__ import annotations

from datetime import date

import pytest

from mealplanner.models.meal_order import MealOrder
from mealplanner.models.resident import Resident


@pytest.mark.parametrize(
    "payload",
    [
        {"room_number": "12"},
        {"name": "Erna Schulz"},
        {"name": "", "room_number": "12"},
        {"name": "Erna Schulz", "room_number": "   "},
    ],
)
def test_create_resident_requires_name_and_room(client, authorize, admin_user, payload):
    authorize(admin_user)
    response = client.post("/api/residents", json=payload)
    assert response.status_code == 400


def test_create_resident_trims_and_defaults(client, authorize, admin_user):
    authorize(admin_user)
    response = client.post(
        "/api/residents",
        json={
            "name": "  Erna Schulz ",
            "room_number": " 12 ",
            "dietary_restrictions": ["diabetic", " ", " pureed "],
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["name"] == "Erna Schulz"
    assert body["room_number"] == "12"
    assert body["dietary_restrictions"] == ["diabetic", "pureed"]
    assert body["active"] is True
    assert body["high_calorie"] is False


def test_patch_cannot_clear_required_fields(client, authorize, admin_user, sample_resident):
    authorize(admin_user)
    response = client.patch(f"/api/residents/{sample_resident.id}", json={"name": " "})
    assert response.status_code == 400

    response = client.patch(f"/api/residents/{sample_resident.id}", json={"active": False})
    assert response.status_code == 200
    assert response.json()["active"] is False
    assert response.json()["name"] == "Margarete Vogel"


def test_search_combines_filters(client, authorize, caregiver_user, db_session):
    db_session.add_all(
        [
            Resident(name="Anna Berger", room_number="101", station="Nord", dietary_restrictions=["diabetic"]),
            Resident(name="Anton Braun", room_number="102", station="Süd", dietary_restrictions=["vegetarian"]),
            Resident(name="Berta Anders", room_number="201", station="Nord", dietary_restrictions=[], active=False),
        ]
    )
    db_session.commit()
    authorize(caregiver_user)

    response = client.get("/api/residents/search", params={"name": "an"})
    assert response.status_code == 200
    body = response.json()
    assert [item["name"] for item in body["items"]] == ["Anna Berger", "Anton Braun", "Berta Anders"]

    response = client.get("/api/residents/search", params={"name": "AN", "station": "nord", "active": "true"})
    assert [item["name"] for item in response.json()["items"]] == ["Anna Berger"]

    response = client.get("/api/residents/search", params={"dietaryRestrictions": "DIAB"})
    assert [item["name"] for item in response.json()["items"]] == ["Anna Berger"]

    response = client.get("/api/residents/search", params={"roomNumber": "10", "limit": 1, "page": 2})
    body = response.json()
    assert body["total"] == 2
    assert body["total_pages"] == 2
    assert body["has_prev_page"] is True
    assert body["has_next_page"] is False
    assert [item["name"] for item in body["items"]] == ["Anton Braun"]
    assert body["filters"]["room_number"] == "10"


def test_search_rejects_oversized_limit(client, authorize, caregiver_user):
    authorize(caregiver_user)
    assert client.get("/api/residents/search", params={"limit": 500}).status_code == 400


def test_delete_resident_with_orders_conflicts(client, authorize, admin_user, db_session, sample_resident):
    db_session.add(
        MealOrder(
            resident_id=sample_resident.id,
            date=date(2026, 3, 2),
            meal_type="lunch",
            lunch_options={"portion_size": "small"},
        )
    )
    db_session.commit()
    authorize(admin_user)

    response = client.delete(f"/api/residents/{sample_resident.id}")
    assert response.status_code == 409
    assert client.get(f"/api/residents/{sample_resident.id}").status_code == 200


@pytest.mark.parametrize("flag", ["high_calorie", "active"])
def test_patch_rejects_null_flags(client, authorize, admin_user, db_session, sample_resident, flag):
    authorize(admin_user)
    response = client.patch(f"/api/residents/{sample_resident.id}", json={flag: None})
    assert response.status_code == 400
    assert response.json()["detail"] == f"{flag} cannot be null"

    db_session.refresh(sample_resident)
    assert sample_resident.active is True
    assert sample_resident.high_calorie is False


def test_search_treats_wildcards_literally(client, authorize, caregiver_user, db_session, sample_resident):
    db_session.add(Resident(name="Paul 100%_Test", room_number="3_1"))
    db_session.commit()
    authorize(caregiver_user)

    response = client.get("/api/residents/search", params={"name": "%"})
    assert [item["name"] for item in response.json()["items"]] == ["Paul 100%_Test"]

    response = client.get("/api/residents/search", params={"roomNumber": "_"})
    assert [item["room_number"] for item in response.json()["items"]] == ["3_1"]

    response = client.get("/api/residents/search", params={"name": "vogel_"})
    assert response.json()["total"] == 0
