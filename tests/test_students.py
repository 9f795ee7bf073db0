from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient


def _student_payload(custom_id: str = "STU-001", email: str = "sam@student.example") -> dict[str, Any]:
    return {
        "custom_id": custom_id,
        "full_name": "Sam Taylor",
        "date_of_birth": "2010-04-02",
        "gender": "Male",
        "phone": "07700 900100",
        "email": email,
        "address": "12 School Road",
        "start_date": "2024-09-01",
        "nationality": "Irish",
        "next_of_kin_name": "Jo Taylor",
        "next_of_kin_relationship": "Parent",
        "next_of_kin_phone": "07700 900101",
        "next_of_kin_email": "jo@example.com",
        "identification": [{"type": "Passport", "number": "X123"}],
    }


def test_student_profile_crud(client: TestClient, admin_headers: dict[str, str]) -> None:
    created = client.post("/api/students/profiles", json=_student_payload(), headers=admin_headers)
    assert created.status_code == 201
    student = created.json()
    assert student["identification"] == [{"type": "Passport", "number": "X123"}]

    updated = client.patch(
        f"/api/students/profiles/{student['id']}",
        json={"address": "14 School Road"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["address"] == "14 School Road"

    page = client.get("/api/students/profiles", params={"gender": "Male"}, headers=admin_headers)
    assert page.status_code == 200
    assert page.json()["total_count"] == 1

    assert len(client.get("/api/students/profiles/all", headers=admin_headers).json()) == 1
    assert client.delete(f"/api/students/profiles/{student['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/students/profiles/{student['id']}", headers=admin_headers).status_code == 404


def test_student_missing_data_and_duplicates(client: TestClient, admin_headers: dict[str, str]) -> None:
    missing = client.post(
        "/api/students/profiles",
        json={**_student_payload(), "next_of_kin_phone": " "},
        headers=admin_headers,
    )
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing Data: Please fill in the next of kin phone input"

    assert client.post("/api/students/profiles", json=_student_payload(), headers=admin_headers).status_code == 201
    duplicate = client.post(
        "/api/students/profiles",
        json=_student_payload(email="another@student.example"),
        headers=admin_headers,
    )
    assert duplicate.status_code == 409


def test_student_paging_cursor(client: TestClient, admin_headers: dict[str, str]) -> None:
    for index in range(3):
        response = client.post(
            "/api/students/profiles",
            json=_student_payload(custom_id=f"STU-{index}", email=f"s{index}@student.example"),
            headers=admin_headers,
        )
        assert response.status_code == 201

    first = client.get("/api/students/profiles", params={"limit": 2}, headers=admin_headers).json()
    assert [item["custom_id"] for item in first["items"]] == ["STU-2", "STU-1"]
    assert first["has_next"] is True

    second = client.get(
        "/api/students/profiles",
        params={"limit": 2, "cursor_type": "next", "next_cursor": first["next_cursor"]},
        headers=admin_headers,
    ).json()
    assert [item["custom_id"] for item in second["items"]] == ["STU-0"]
    assert second["has_next"] is False
