from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from schoolms.domain.models import ActivityLog
from schoolms.infra import db


def _staff_payload(custom_id: str = "STF-001", email: str = "ada@greenfield.example") -> dict[str, Any]:
    return {
        "custom_id": custom_id,
        "full_name": "Ada Lovelace",
        "date_of_birth": "1990-12-10",
        "gender": "Female",
        "phone": "07700 900001",
        "email": email,
        "address": "1 Analytical Way",
        "marital_status": "Single",
        "start_date": "2024-09-01",
        "nationality": "British",
        "next_of_kin_name": "Byron",
        "next_of_kin_relationship": "Parent",
        "next_of_kin_phone": "07700 900002",
        "next_of_kin_email": "byron@example.com",
    }


def _contract_payload(staff_id: str, custom_id: str, status: str = "Active") -> dict[str, Any]:
    return {
        "staff_id": staff_id,
        "custom_id": custom_id,
        "job_title": "Teacher",
        "contract_type": "Full-time",
        "contract_start_date": "2024-09-01",
        "status": status,
        "salary": 32000,
        "pay_frequency": "Monthly",
    }


def test_staff_profile_crud(client: TestClient, admin_headers: dict[str, str]) -> None:
    created = client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers)
    assert created.status_code == 201
    staff_id = created.json()["id"]

    fetched = client.get(f"/api/staff/profiles/{staff_id}", headers=admin_headers)
    assert fetched.json()["full_name"] == "Ada Lovelace"

    updated = client.patch(
        f"/api/staff/profiles/{staff_id}",
        json={"phone": "07700 900099"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["phone"] == "07700 900099"

    with Session(db.get_engine()) as session:
        log = session.exec(select(ActivityLog).where(ActivityLog.log_action == "Staff Profile Update")).one()
    assert {"kind": "E", "path": ["phone"], "lhs": "07700 900001", "rhs": "07700 900099"} in log.record_change

    page = client.get("/api/staff/profiles", params={"search": "Lovelace"}, headers=admin_headers)
    assert page.json()["total_count"] == 1

    assert client.delete(f"/api/staff/profiles/{staff_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/staff/profiles/{staff_id}", headers=admin_headers).status_code == 404


def test_staff_profile_validation_and_uniqueness(client: TestClient, admin_headers: dict[str, str]) -> None:
    missing = client.post(
        "/api/staff/profiles",
        json={**_staff_payload(), "full_name": ""},
        headers=admin_headers,
    )
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing Data: Please fill in the full name input"

    assert client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers).status_code == 201
    same_id = client.post(
        "/api/staff/profiles",
        json=_staff_payload(email="other@greenfield.example"),
        headers=admin_headers,
    )
    assert same_id.status_code == 409
    same_email = client.post(
        "/api/staff/profiles",
        json=_staff_payload(custom_id="STF-002"),
        headers=admin_headers,
    )
    assert same_email.status_code == 409


def test_one_active_contract_per_staff(client: TestClient, admin_headers: dict[str, str]) -> None:
    staff_id = client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers).json()["id"]

    first = client.post("/api/staff/contracts", json=_contract_payload(staff_id, "CON-1"), headers=admin_headers)
    assert first.status_code == 201
    assert first.json()["staff_full_name"] == "Ada Lovelace"

    second = client.post("/api/staff/contracts", json=_contract_payload(staff_id, "CON-2"), headers=admin_headers)
    assert second.status_code == 409

    closed = client.post(
        "/api/staff/contracts",
        json=_contract_payload(staff_id, "CON-3", status="Closed"),
        headers=admin_headers,
    )
    assert closed.status_code == 201

    reopened = client.patch(
        f"/api/staff/contracts/{closed.json()['id']}",
        json={"status": "Active"},
        headers=admin_headers,
    )
    assert reopened.status_code == 409

    orphan = client.post(
        "/api/staff/contracts",
        json=_contract_payload("000000000000000000000000", "CON-4"),
        headers=admin_headers,
    )
    assert orphan.status_code == 404


def test_renaming_staff_updates_contract_names(client: TestClient, admin_headers: dict[str, str]) -> None:
    staff_id = client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers).json()["id"]
    contract_id = client.post(
        "/api/staff/contracts",
        json=_contract_payload(staff_id, "CON-1"),
        headers=admin_headers,
    ).json()["id"]

    client.patch(f"/api/staff/profiles/{staff_id}", json={"full_name": "Ada King"}, headers=admin_headers)
    contract = client.get(f"/api/staff/contracts/{contract_id}", headers=admin_headers)
    assert contract.json()["staff_full_name"] == "Ada King"


def test_staff_with_contracts_cannot_be_deleted(client: TestClient, admin_headers: dict[str, str]) -> None:
    staff_id = client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers).json()["id"]
    contract_id = client.post(
        "/api/staff/contracts",
        json=_contract_payload(staff_id, "CON-1"),
        headers=admin_headers,
    ).json()["id"]

    blocked = client.delete(f"/api/staff/profiles/{staff_id}", headers=admin_headers)
    assert blocked.status_code == 409

    assert client.delete(f"/api/staff/contracts/{contract_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/staff/profiles/{staff_id}", headers=admin_headers).status_code == 204


def test_contract_list_filters(client: TestClient, admin_headers: dict[str, str]) -> None:
    staff_id = client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers).json()["id"]
    client.post("/api/staff/contracts", json=_contract_payload(staff_id, "CON-1"), headers=admin_headers)
    client.post(
        "/api/staff/contracts",
        json=_contract_payload(staff_id, "CON-2", status="Closed"),
        headers=admin_headers,
    )

    active = client.get("/api/staff/contracts", params={"status": "Active"}, headers=admin_headers)
    assert [item["custom_id"] for item in active.json()["items"]] == ["CON-1"]

    everything = client.get("/api/staff/contracts", params={"status": "all"}, headers=admin_headers)
    assert everything.json()["total_count"] == 2

    invalid = client.get("/api/staff/contracts", params={"status": "Pending"}, headers=admin_headers)
    assert invalid.status_code == 400

    all_contracts = client.get("/api/staff/contracts/all", headers=admin_headers)
    assert len(all_contracts.json()) == 2


def test_staff_are_scoped_to_their_organisation(
    client: TestClient,
    admin_headers: dict[str, str],
    signup: Any,
) -> None:
    staff_id = client.post("/api/staff/profiles", json=_staff_payload(), headers=admin_headers).json()["id"]
    other = signup(email="office@otherschool.example", name="Other School")
    other_headers = {"Authorization": f"Bearer {other['access_token']}"}

    assert client.get(f"/api/staff/profiles/{staff_id}", headers=other_headers).status_code == 404
    assert client.get("/api/staff/profiles", headers=other_headers).json()["total_count"] == 0
