from __future__ import annotations

from mealplanner.models.versioned_record import VersionedRecord
from mealplanner.services.versioning import changed_fields

ORDER_DATE = "2026-03-02"


def _lunch_payload(resident_id: int, **overrides) -> dict:
    payload = {
        "resident_id": resident_id,
        "date": ORDER_DATE,
        "meal_type": "lunch",
        "lunch_options": {"portion_size": "small", "soup": True},
    }
    payload.update(overrides)
    return payload


def _history(db_session, order_id: int) -> list[VersionedRecord]:
    return (
        db_session.query(VersionedRecord)
        .filter(VersionedRecord.collection_name == "meal-orders", VersionedRecord.document_id == str(order_id))
        .order_by(VersionedRecord.version.asc())
        .all()
    )


def test_changed_fields_only_lists_differences():
    before = {"status": "pending", "urgent": False, "special_notes": None}
    after = {"status": "prepared", "urgent": False, "special_notes": "Warm"}
    assert changed_fields(before, after, ("status", "urgent", "special_notes")) == ["status", "special_notes"]


def test_every_change_appends_a_version(client, authorize, admin_user, db_session, sample_resident):
    authorize(admin_user)
    order_id = client.post("/api/meal-orders", json=_lunch_payload(sample_resident.id)).json()["id"]
    assert client.patch(f"/api/meal-orders/{order_id}", json={"special_notes": "No onions"}).status_code == 200
    assert client.patch(f"/api/meal-orders/{order_id}", json={"status": "prepared"}).status_code == 200
    assert client.delete(f"/api/meal-orders/{order_id}").status_code == 204

    history = _history(db_session, order_id)
    assert [record.version for record in history] == [1, 2, 3, 4]
    assert [record.change_type for record in history] == ["create", "update", "update", "delete"]
    assert {record.changed_by_id for record in history} == {admin_user.id}

    created, notes, prepared, deleted = history
    assert created.snapshot["special_notes"] is None
    assert created.snapshot["lunch_options"]["portion_size"] == "small"
    assert created.changed_fields == []

    # Update snapshots hold the state before the change
    assert notes.snapshot["special_notes"] is None
    assert notes.snapshot["version"] == 1
    assert notes.changed_fields == ["special_notes"]
    assert prepared.snapshot["status"] == "pending"
    assert prepared.changed_fields == ["status", "prepared_at", "prepared_by_id"]

    assert deleted.snapshot["status"] == "prepared"
    assert deleted.snapshot["special_notes"] == "No onions"


def test_history_is_admin_only(client, authorize, admin_user, caregiver_user, kitchen_user, sample_resident):
    authorize(caregiver_user)
    order_id = client.post("/api/meal-orders", json=_lunch_payload(sample_resident.id)).json()["id"]
    assert client.get("/api/versioned-records").status_code == 403

    authorize(kitchen_user)
    assert client.get("/api/versioned-records").status_code == 403

    authorize(admin_user)
    response = client.get(
        "/api/versioned-records",
        params={"collection": "meal-orders", "documentId": str(order_id), "changeType": "create"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    record = body["items"][0]
    assert record["version"] == 1
    assert record["changed_by_id"] == caregiver_user.id

    assert client.get(f"/api/versioned-records/{record['id']}").json()["document_id"] == str(order_id)
    assert client.get("/api/versioned-records/999").status_code == 404
    assert client.get("/api/versioned-records", params={"changeType": "archive"}).status_code == 400


def test_resolve_conflict_applies_merged_data(client, authorize, admin_user, db_session, sample_resident):
    authorize(admin_user)
    order_id = client.post("/api/meal-orders", json=_lunch_payload(sample_resident.id)).json()["id"]
    assert client.patch(f"/api/meal-orders/{order_id}", json={"version": 1, "special_notes": "Mine"}).status_code == 200

    # The client still holds version 1 and merges both edits
    merged = {
        "version": 1,
        "special_notes": "Mine, and no onions",
        "urgent": True,
        "lunch_options": {"portion_size": "small", "soup": True},
    }
    response = client.post(f"/api/meal-orders/{order_id}/resolve-conflict", json={"merged_data": merged})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Conflict resolved successfully"
    assert body["resolved_document"]["version"] == 3
    assert body["resolved_document"]["special_notes"] == "Mine, and no onions"
    assert body["resolved_document"]["urgent"] is True

    resolution = _history(db_session, order_id)[-1]
    assert resolution.change_type == "update"
    assert resolution.version == 3
    assert resolution.snapshot["special_notes"] == "Mine"
    assert resolution.changed_fields == ["urgent", "special_notes"]


def test_resolve_conflict_requires_merged_data(client, authorize, admin_user, sample_resident):
    authorize(admin_user)
    order_id = client.post("/api/meal-orders", json=_lunch_payload(sample_resident.id)).json()["id"]

    assert client.post(f"/api/meal-orders/{order_id}/resolve-conflict", json={}).status_code == 400
    missing = client.post("/api/meal-orders/999/resolve-conflict", json={"merged_data": {"special_notes": "x"}})
    assert missing.status_code == 404


def test_resolve_conflict_keeps_role_rules(client, authorize, caregiver_user, kitchen_user, sample_resident):
    authorize(caregiver_user)
    order_id = client.post("/api/meal-orders", json=_lunch_payload(sample_resident.id)).json()["id"]
    url = f"/api/meal-orders/{order_id}/resolve-conflict"

    # An unchanged status in the merged copy is not a status change
    response = client.post(url, json={"merged_data": {"status": "pending", "special_notes": "Cut small"}})
    assert response.status_code == 200
    assert client.post(url, json={"merged_data": {"status": "completed"}}).status_code == 403

    authorize(kitchen_user)
    response = client.post(url, json={"merged_data": {"status": "prepared", "special_notes": "Cut small"}})
    assert response.status_code == 200
    assert response.json()["resolved_document"]["status"] == "prepared"
    assert client.post(url, json={"merged_data": {"special_notes": "Kitchen note"}}).status_code == 403
