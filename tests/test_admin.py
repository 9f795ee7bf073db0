from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from fastapi.testclient import TestClient

PASSWORD = "Str0ng!Pass"


def _auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _tab_access(*actions: str) -> list[dict[str, Any]]:
    return [
        {
            "group": "Curriculum",
            "tabs": [
                {
                    "tab": "Programmes",
                    "group": "Curriculum",
                    "actions": [{"action": action, "permission": True} for action in actions],
                }
            ],
        }
    ]


def _create_role(client: TestClient, headers: dict[str, str], name: str, *actions: str) -> dict[str, Any]:
    response = client.post(
        "/api/admin/roles",
        json={"name": name, "description": f"{name} role", "tab_access": _tab_access(*actions)},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _create_user(
    client: TestClient,
    headers: dict[str, str],
    staff_id: str,
    role_id: str | None,
    email: str = "teacher@greenfield.example",
) -> dict[str, Any]:
    response = client.post(
        "/api/admin/users",
        json={
            "staff_id": staff_id,
            "name": "Grace Hopper",
            "email": email,
            "password": PASSWORD,
            "role_id": role_id,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _signin(client: TestClient, email: str) -> dict[str, str]:
    response = client.post("/api/accounts/signin", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return _auth_header(response.json()["access_token"])


def test_role_lifecycle(client: TestClient, admin_headers: dict[str, str]) -> None:
    role = _create_role(client, admin_headers, "Programme Lead", "View Programmes", "Create Programme")
    assert role["absolute_admin"] is False

    duplicate = client.post("/api/admin/roles", json={"name": "Programme Lead"}, headers=admin_headers)
    assert duplicate.status_code == 409

    updated = client.patch(
        f"/api/admin/roles/{role['id']}",
        json={"description": "Leads programmes"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Leads programmes"

    roles = client.get("/api/admin/roles", headers=admin_headers)
    assert {item["name"] for item in roles.json()} == {"Absolute Admin", "Programme Lead"}

    assert client.delete(f"/api/admin/roles/{role['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/admin/roles/{role['id']}", headers=admin_headers).status_code == 404


def test_absolute_admin_role_cannot_be_edited_or_deleted(
    client: TestClient,
    signup: Callable[..., dict[str, Any]],
) -> None:
    tokens = signup()
    headers = _auth_header(tokens["access_token"])
    role_id = tokens["account"]["role_id"]
    assert client.patch(f"/api/admin/roles/{role_id}", json={"name": "Renamed"}, headers=headers).status_code == 403
    assert client.delete(f"/api/admin/roles/{role_id}", headers=headers).status_code == 403


def test_user_requires_active_contract(
    client: TestClient,
    admin_headers: dict[str, str],
) -> None:
    staff = client.post(
        "/api/staff/profiles",
        json={
            "custom_id": "STF-9",
            "full_name": "No Contract",
            "date_of_birth": "1991-01-01",
            "gender": "Male",
            "phone": "07700 900009",
            "email": "nocontract@greenfield.example",
            "address": "9 Lane",
            "marital_status": "Single",
            "start_date": "2024-09-01",
            "nationality": "British",
            "next_of_kin_name": "Kin",
            "next_of_kin_relationship": "Sibling",
            "next_of_kin_phone": "07700 900010",
            "next_of_kin_email": "kin@example.com",
        },
        headers=admin_headers,
    )
    assert staff.status_code == 201
    response = client.post(
        "/api/admin/users",
        json={
            "staff_id": staff.json()["id"],
            "name": "No Contract",
            "email": "nocontract@greenfield.example",
            "password": PASSWORD,
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert "active contract" in response.json()["detail"]


def test_limited_user_permissions(
    client: TestClient,
    admin_headers: dict[str, str],
    make_staff: Callable[..., dict[str, Any]],
) -> None:
    staff = make_staff(admin_headers)
    role = _create_role(client, admin_headers, "Viewer", "View Programmes")
    user = _create_user(client, admin_headers, staff["id"], role["id"])
    assert user["account_type"] == "User"

    candidates = client.get("/api/admin/users/staff", headers=admin_headers)
    assert [item["id"] for item in candidates.json()] == [staff["id"]]

    headers = _signin(client, "teacher@greenfield.example")
    assert client.get("/api/curriculum/programmes", headers=headers).status_code == 200
    denied = client.post(
        "/api/curriculum/programmes",
        json={"custom_id": "PRG-1", "programme": "Science", "status": "Offering"},
        headers=headers,
    )
    assert denied.status_code == 403
    assert denied.json()["detail"].startswith("Unauthorised Action")

    # "All Programmes" lookups accept any of the related view actions
    assert client.get("/api/curriculum/programmes/all", headers=headers).status_code == 200
    assert client.get("/api/staff/contracts/all", headers=headers).status_code == 403

    assert client.get("/api/admin/roles", headers=headers).status_code == 403
    assert client.get("/api/admin/organisation", headers=headers).status_code == 403


def test_locked_user_is_rejected(
    client: TestClient,
    admin_headers: dict[str, str],
    make_staff: Callable[..., dict[str, Any]],
) -> None:
    staff = make_staff(admin_headers)
    role = _create_role(client, admin_headers, "Viewer", "View Programmes")
    user = _create_user(client, admin_headers, staff["id"], role["id"])
    headers = _signin(client, "teacher@greenfield.example")

    locked = client.put(
        f"/api/admin/users/{user['id']}",
        json={
            "staff_id": staff["id"],
            "name": "Grace Hopper",
            "email": "teacher@greenfield.example",
            "status": "Locked",
            "role_id": role["id"],
        },
        headers=admin_headers,
    )
    assert locked.status_code == 200
    assert locked.json()["status"] == "Locked"

    response = client.get("/api/curriculum/programmes", headers=headers)
    assert response.status_code == 409
    assert response.json()["detail"].startswith("Your account is not active")

    # unchanged password keeps the original hash
    assert client.post(
        "/api/accounts/signin",
        json={"email": "teacher@greenfield.example", "password": PASSWORD},
    ).status_code == 200


def test_default_admin_cannot_be_locked_or_deleted(
    client: TestClient,
    signup: Callable[..., dict[str, Any]],
) -> None:
    tokens = signup()
    headers = _auth_header(tokens["access_token"])
    owner = tokens["account"]
    locked = client.put(
        f"/api/admin/users/{owner['id']}",
        json={"name": owner["name"], "email": owner["email"], "status": "Locked"},
        headers=headers,
    )
    assert locked.status_code == 403
    assert client.delete(f"/api/admin/users/{owner['id']}", headers=headers).status_code == 403


def test_default_admin_keeps_the_default_role(
    client: TestClient,
    signup: Callable[..., dict[str, Any]],
) -> None:
    tokens = signup()
    headers = _auth_header(tokens["access_token"])
    owner = tokens["account"]
    other = _create_role(client, headers, "Bursar", "View Activity Logs")
    base = {"name": owner["name"], "email": owner["email"], "status": "Active"}

    for role_id in (None, other["id"]):
        response = client.put(f"/api/admin/users/{owner['id']}", json={**base, "role_id": role_id}, headers=headers)
        assert response.status_code == 403
        assert "Another role cannot be assigned" in response.json()["detail"]

    kept = client.put(
        f"/api/admin/users/{owner['id']}",
        json={**base, "role_id": owner["role_id"]},
        headers=headers,
    )
    assert kept.status_code == 200, kept.text


def test_users_list_excludes_organisation_account(
    client: TestClient,
    admin_headers: dict[str, str],
    make_staff: Callable[..., dict[str, Any]],
) -> None:
    staff = make_staff(admin_headers)
    user = _create_user(client, admin_headers, staff["id"], None)
    page = client.get("/api/admin/users", headers=admin_headers)
    assert page.status_code == 200
    body = page.json()
    assert body["total_count"] == 1
    assert [item["id"] for item in body["items"]] == [user["id"]]

    duplicate = client.post(
        "/api/admin/users",
        json={"staff_id": staff["id"], "name": "Again", "email": user["email"], "password": PASSWORD},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    assert client.delete(f"/api/admin/users/{user['id']}", headers=admin_headers).status_code == 204


def test_settings_disable_activity_logging(client: TestClient, admin_headers: dict[str, str]) -> None:
    organisation = client.get("/api/admin/organisation", headers=admin_headers)
    assert organisation.status_code == 200
    assert organisation.json()["settings"]["log_activity"] is True

    updated = client.put(
        "/api/admin/organisation/settings",
        json={"settings": {"log_activity": False}},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["settings"]["log_activity"] is False

    latest = client.get("/api/admin/activity-logs/latest", headers=admin_headers)
    assert latest.json()["log_action"] == "Organisation Settings Update"

    before = client.get("/api/admin/activity-logs", headers=admin_headers).json()["total_count"]
    created = client.post(
        "/api/curriculum/topics",
        json={"custom_id": "TOP-1", "topic": "Fractions", "status": "Offering"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    after = client.get("/api/admin/activity-logs", headers=admin_headers).json()["total_count"]
    assert after == before

    empty = client.put("/api/admin/organisation/settings", json={"settings": {}}, headers=admin_headers)
    assert empty.status_code == 400


def test_activity_logs_filter_and_date_range(client: TestClient, admin_headers: dict[str, str]) -> None:
    today = datetime.now(UTC).date().isoformat()
    page = client.get(
        "/api/admin/activity-logs",
        params={"record_model": "Role", "from": today, "to": today},
        headers=admin_headers,
    )
    assert page.status_code == 200
    assert [item["record_model"] for item in page.json()["items"]] == ["Role"]

    past = client.get(
        "/api/admin/activity-logs",
        params={"from": "2000-01-01", "to": "2000-01-02"},
        headers=admin_headers,
    )
    assert past.json()["total_count"] == 0

    bad = client.get("/api/admin/activity-logs", params={"from": "soon", "to": "later"}, headers=admin_headers)
    assert bad.status_code == 400


def test_requests_are_billed_to_the_organisation(client: TestClient, admin_headers: dict[str, str]) -> None:
    assert client.get("/api/curriculum/programmes", headers=admin_headers).status_code == 200
    current = client.get("/api/admin/billings/current", headers=admin_headers)
    assert current.status_code == 200
    bill = current.json()
    assert bill["billing_status"] == "Not Billed"
    assert bill["payment_status"] == "Unpaid"
    assert bill["billing_id"].startswith("BILL-")
    assert bill["database_operation"] > 0
    assert bill["render_compute_seconds"] >= 1

    page = client.get("/api/admin/billings", headers=admin_headers)
    assert page.status_code == 200
    assert page.json()["total_count"] == 1


def test_role_list_hides_absolute_admin_and_own_role(
    client: TestClient,
    admin_headers: dict[str, str],
    make_staff: Callable[..., dict[str, Any]],
) -> None:
    staff = make_staff(admin_headers)
    manager_role = _create_role(client, admin_headers, "Role Manager", "View Roles")
    _create_role(client, admin_headers, "Viewer", "View Programmes")
    _create_user(client, admin_headers, staff["id"], manager_role["id"])
    headers = _signin(client, "teacher@greenfield.example")

    roles = client.get("/api/admin/roles", headers=headers)
    assert roles.status_code == 200
    assert [item["name"] for item in roles.json()] == ["Viewer"]
