from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi.testclient import TestClient

Headers = dict[str, str]


def _post(client: TestClient, path: str, payload: dict[str, Any], headers: Headers) -> dict[str, Any]:
    response = client.post(f"/api/curriculum/{path}", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _build_tree(client: TestClient, headers: Headers) -> dict[str, dict[str, Any]]:
    programme = _post(
        client,
        "programmes",
        {"custom_id": "PRG-1", "programme": "Secondary", "status": "Offering"},
        headers,
    )
    course = _post(
        client,
        "courses",
        {
            "programme_id": programme["id"],
            "custom_id": "CRS-1",
            "course_name": "Science",
            "course_full_title": "General Science",
            "offering_start_date": "2024-09-01",
            "status": "Active",
        },
        headers,
    )
    level = _post(
        client,
        "levels",
        {
            "course_id": course["id"],
            "custom_id": "LVL-1",
            "level": "Year 7",
            "level_full_title": "Year 7 Science",
            "offering_start_date": "2024-09-01",
            "status": "Active",
        },
        headers,
    )
    subject = _post(
        client,
        "subjects",
        {
            "level_id": level["id"],
            "custom_id": "SUB-1",
            "subject": "Biology",
            "subject_full_title": "Year 7 Biology",
            "offering_start_date": "2024-09-01",
            "status": "Active",
        },
        headers,
    )
    return {"programme": programme, "course": course, "level": level, "subject": subject}


def test_curriculum_tree_links_parents(client: TestClient, admin_headers: Headers) -> None:
    tree = _build_tree(client, admin_headers)
    assert tree["course"]["programme_id"] == tree["programme"]["id"]
    assert tree["subject"]["course_id"] == tree["course"]["id"]

    courses = client.get(
        "/api/curriculum/courses",
        params={"programme_id": tree["programme"]["id"]},
        headers=admin_headers,
    )
    assert courses.status_code == 200
    assert [item["id"] for item in courses.json()["items"]] == [tree["course"]["id"]]

    all_levels = client.get("/api/curriculum/levels/all", headers=admin_headers)
    assert [item["custom_id"] for item in all_levels.json()] == ["LVL-1"]


def test_missing_data_and_duplicate_custom_id(client: TestClient, admin_headers: Headers) -> None:
    missing = client.post(
        "/api/curriculum/programmes",
        json={"custom_id": "PRG-1", "programme": "", "status": "Offering"},
        headers=admin_headers,
    )
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing Data: Please fill in the programme input"

    _post(client, "programmes", {"custom_id": "PRG-1", "programme": "Primary", "status": "Offering"}, admin_headers)
    duplicate = client.post(
        "/api/curriculum/programmes",
        json={"custom_id": "PRG-1", "programme": "Secondary", "status": "Offering"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409


def test_children_need_existing_parent(client: TestClient, admin_headers: Headers) -> None:
    response = client.post(
        "/api/curriculum/courses",
        json={
            "programme_id": "000000000000000000000000",
            "custom_id": "CRS-1",
            "course_name": "Science",
            "course_full_title": "General Science",
            "offering_start_date": "2024-09-01",
            "status": "Active",
        },
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_parents_with_children_cannot_be_deleted(client: TestClient, admin_headers: Headers) -> None:
    tree = _build_tree(client, admin_headers)
    for path, key in (("programmes", "programme"), ("courses", "course"), ("levels", "level")):
        blocked = client.delete(f"/api/curriculum/{path}/{tree[key]['id']}", headers=admin_headers)
        assert blocked.status_code == 409, path

    for path, key in (("subjects", "subject"), ("levels", "level"), ("courses", "course"), ("programmes", "programme")):
        assert client.delete(f"/api/curriculum/{path}/{tree[key]['id']}", headers=admin_headers).status_code == 204


def test_syllabus_topics_must_exist_and_block_topic_deletion(client: TestClient, admin_headers: Headers) -> None:
    tree = _build_tree(client, admin_headers)
    topic = _post(
        client,
        "topics",
        {
            "custom_id": "TOP-1",
            "topic": "Cells",
            "status": "Offering",
            "resources": [{"resource_type": "Video", "resource_name": "Cell intro"}],
        },
        admin_headers,
    )
    syllabus_payload = {
        "subject_id": tree["subject"]["id"],
        "custom_id": "SYL-1",
        "syllabus": "Biology Term 1",
        "status": "Active",
        "topics": [{"topic_id": topic["id"], "week": "1"}],
    }
    unknown = client.post(
        "/api/curriculum/syllabuses",
        json={**syllabus_payload, "topics": [{"topic_id": "000000000000000000000000"}]},
        headers=admin_headers,
    )
    assert unknown.status_code == 404

    syllabus = _post(client, "syllabuses", syllabus_payload, admin_headers)
    assert syllabus["topics"] == [{"topic_id": topic["id"], "week": "1"}]

    blocked = client.delete(f"/api/curriculum/topics/{topic['id']}", headers=admin_headers)
    assert blocked.status_code == 409
    assert "Biology Term 1" in blocked.json()["detail"]

    assert client.delete(f"/api/curriculum/syllabuses/{syllabus['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/curriculum/topics/{topic['id']}", headers=admin_headers).status_code == 204


def test_update_records_change_and_keeps_required_fields(client: TestClient, admin_headers: Headers) -> None:
    programme = _post(
        client,
        "programmes",
        {"custom_id": "PRG-1", "programme": "Primary", "status": "Offering"},
        admin_headers,
    )
    updated = client.patch(
        f"/api/curriculum/programmes/{programme['id']}",
        json={"status": "Not Offering"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["status"] == "Not Offering"

    cleared = client.patch(
        f"/api/curriculum/programmes/{programme['id']}",
        json={"programme": "  "},
        headers=admin_headers,
    )
    assert cleared.status_code == 400

    latest = client.get("/api/admin/activity-logs/latest", headers=admin_headers).json()
    assert latest["log_action"] == "Programme Update"
    assert latest["record_change"] == [
        {"kind": "E", "path": ["status"], "lhs": "Offering", "rhs": "Not Offering"}
    ]


def test_programme_managers_allow_one_active_assignment(
    client: TestClient,
    admin_headers: Headers,
    make_staff: Callable[..., dict[str, Any]],
) -> None:
    tree = _build_tree(client, admin_headers)
    staff = make_staff(admin_headers)
    payload = {
        "parent_id": tree["programme"]["id"],
        "staff_id": staff["id"],
        "managed_from": "2024-09-01",
    }
    assignment = _post(client, "programme-managers", payload, admin_headers)
    assert assignment["parent_id"] == tree["programme"]["id"]
    assert assignment["staff_full_name"] == "Ada Lovelace"
    assert assignment["staff_type"] == "Main"

    duplicate = client.post("/api/curriculum/programme-managers", json=payload, headers=admin_headers)
    assert duplicate.status_code == 409

    listed = client.get(
        "/api/curriculum/programme-managers",
        params={"parent_id": tree["programme"]["id"]},
        headers=admin_headers,
    )
    assert [item["id"] for item in listed.json()["items"]] == [assignment["id"]]

    ended = client.patch(
        f"/api/curriculum/programme-managers/{assignment['id']}",
        json={"status": "Inactive", "managed_until": "2025-07-31"},
        headers=admin_headers,
    )
    assert ended.status_code == 200
    assert ended.json()["status"] == "Inactive"
    assert client.post("/api/curriculum/programme-managers", json=payload, headers=admin_headers).status_code == 201

    blocked = client.delete(f"/api/staff/profiles/{staff['id']}", headers=admin_headers)
    assert blocked.status_code == 409

    assert (
        client.delete(f"/api/curriculum/programme-managers/{assignment['id']}", headers=admin_headers).status_code
        == 204
    )


def test_subject_teacher_requires_known_staff(client: TestClient, admin_headers: Headers) -> None:
    tree = _build_tree(client, admin_headers)
    response = client.post(
        "/api/curriculum/subject-teachers",
        json={
            "parent_id": tree["subject"]["id"],
            "staff_id": "000000000000000000000000",
            "managed_from": "2024-09-01",
            "staff_type": "Assistant",
        },
        headers=admin_headers,
    )
    assert response.status_code == 404
