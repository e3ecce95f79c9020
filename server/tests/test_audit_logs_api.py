from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mealplanner.models.audit_log import AuditLog


@pytest.fixture()
def audit_entries(db_session):
    entries = [
        AuditLog(
            action="login_success",
            status="success",
            user_id="1",
            email="admin@example.com",
            created_at=datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc),
        ),
        AuditLog(
            action="login_failure",
            status="failure",
            email="Nurse@Example.com",
            ip_address="10.0.0.5",
            error_message="Invalid password",
            created_at=datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc),
        ),
        AuditLog(
            action="data_update",
            status="success",
            user_id="1",
            email="admin@example.com",
            resource="residents",
            resource_id="7",
            details={"fields": ["station"]},
            created_at=datetime(2026, 3, 2, 23, 59, tzinfo=timezone.utc),
        ),
        AuditLog(
            action="unauthorized_access",
            status="denied",
            user_id="2",
            email="kitchen@example.com",
            resource="residents",
            created_at=datetime(2026, 3, 3, 7, 0, tzinfo=timezone.utc),
        ),
    ]
    db_session.add_all(entries)
    db_session.commit()
    return entries


def test_audit_logs_are_admin_only(client, authorize, caregiver_user, audit_entries):
    authorize(caregiver_user)
    assert client.get("/api/audit-logs").status_code == 403


def test_audit_logs_newest_first(client, authorize, admin_user, audit_entries):
    authorize(admin_user)
    response = client.get("/api/audit-logs", params={"resource": "residents"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [item["action"] for item in body["items"]] == ["unauthorized_access", "data_update"]


@pytest.mark.parametrize(
    ("params", "expected_actions"),
    [
        ({"userId": "1"}, {"login_success", "data_update"}),
        ({"email": "nurse@example.com"}, {"login_failure"}),
        ({"action": "login_failure"}, {"login_failure"}),
        ({"status": "denied"}, {"unauthorized_access"}),
        ({"startDate": "2026-03-02", "endDate": "2026-03-02"}, {"login_failure", "data_update"}),
        ({"startDate": "2026-03-03"}, {"unauthorized_access"}),
        ({"endDate": "2026-03-01", "status": "success"}, {"login_success"}),
        ({"userId": "1", "resource": "residents"}, {"data_update"}),
    ],
)
def test_audit_log_filters(client, authorize, admin_user, audit_entries, params, expected_actions):
    authorize(admin_user)
    response = client.get("/api/audit-logs", params=params)
    assert response.status_code == 200, response.text
    assert {item["action"] for item in response.json()["items"]} == expected_actions


def test_audit_log_pagination_and_validation(client, authorize, admin_user, audit_entries):
    authorize(admin_user)
    body = client.get("/api/audit-logs", params={"limit": 3, "page": 2}).json()
    assert body["total"] == 4
    assert body["total_pages"] == 2
    assert body["has_prev_page"] is True
    assert body["has_next_page"] is False
    assert [item["action"] for item in body["items"]] == ["login_success"]

    assert client.get("/api/audit-logs", params={"action": "dance"}).status_code == 400
