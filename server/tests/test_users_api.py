from __future__ import annotations

from mealplanner.auth.security import verify_password
from mealplanner.models.user import User


def test_admin_creates_and_lists_users(client, authorize, admin_user, db_session):
    authorize(admin_user)
    response = client.post(
        "/api/users",
        json={"email": "Cook@Example.com", "name": "Cook", "password": "kitchen-secret", "role": "kitchen"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["email"] == "cook@example.com"
    assert body["role"] == "kitchen"
    assert "hashed_password" not in body

    stored = db_session.get(User, body["id"])
    assert verify_password("kitchen-secret", stored.hashed_password)

    listing = client.get("/api/users", params={"role": "kitchen"}).json()
    assert listing["total"] == 1
    assert listing["items"][0]["email"] == "cook@example.com"


def test_duplicate_email_conflicts(client, authorize, admin_user):
    authorize(admin_user)
    payload = {"email": "ADMIN@example.com", "name": "Copy", "password": "long-enough", "role": "admin"}
    assert client.post("/api/users", json=payload).status_code == 409


def test_short_password_is_rejected(client, authorize, admin_user):
    authorize(admin_user)
    payload = {"email": "new@example.com", "name": "New", "password": "short", "role": "caregiver"}
    assert client.post("/api/users", json=payload).status_code == 400


def test_non_admin_sees_only_self(client, authorize, admin_user, caregiver_user):
    authorize(caregiver_user)
    assert client.get("/api/users").status_code == 403
    assert client.get(f"/api/users/{caregiver_user.id}").status_code == 200
    assert client.get(f"/api/users/{admin_user.id}").status_code == 403


def test_non_admin_updates_only_name_and_password(client, authorize, caregiver_user, db_session):
    authorize(caregiver_user)
    response = client.patch(f"/api/users/{caregiver_user.id}", json={"name": "Carla", "password": "a-new-password"})
    assert response.status_code == 200, response.text
    assert response.json()["name"] == "Carla"

    stored = db_session.get(User, caregiver_user.id)
    db_session.refresh(stored)
    assert verify_password("a-new-password", stored.hashed_password)

    assert client.patch(f"/api/users/{caregiver_user.id}", json={"role": "admin"}).status_code == 403


def test_admin_updates_role_and_status(client, authorize, admin_user, kitchen_user):
    authorize(admin_user)
    response = client.patch(f"/api/users/{kitchen_user.id}", json={"role": "caregiver", "is_active": False})
    assert response.status_code == 200
    assert response.json()["role"] == "caregiver"
    assert response.json()["is_active"] is False

    assert client.patch(f"/api/users/{admin_user.id}", json={"is_active": False}).status_code == 400


def test_admin_deletes_other_users_only(client, authorize, admin_user, kitchen_user):
    authorize(admin_user)
    assert client.delete(f"/api/users/{admin_user.id}").status_code == 400
    assert client.delete(f"/api/users/{kitchen_user.id}").status_code == 204
    assert client.get(f"/api/users/{kitchen_user.id}").status_code == 404
