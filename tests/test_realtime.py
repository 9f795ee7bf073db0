from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select
from starlette.websockets import WebSocketDisconnect

from schoolms.domain.models import EventRecord
from schoolms.infra import db
from schoolms.infra.realtime import organisation_hub


def test_socket_receives_database_changes(client: TestClient, signup: Callable[..., dict[str, Any]]) -> None:
    tokens = signup()
    organisation_id = tokens["account"]["organisation_id"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    with client.websocket_connect(f"/ws/organisation?token={tokens['access_token']}") as websocket:
        assert organisation_hub.room_size(organisation_id) == 1
        created = client.post(
            "/api/curriculum/topics",
            json={"custom_id": "TOP-1", "topic": "Forces", "status": "Offering"},
            headers=headers,
        )
        assert created.status_code == 201
        message = websocket.receive_json()

    assert message["event"] == "databaseChange"
    assert message["data"]["collection"] == "topics"
    assert message["data"]["change_operation"] == "create"
    assert message["data"]["full_document"]["id"] == created.json()["id"]

    with Session(db.get_engine()) as session:
        records = session.exec(select(EventRecord).where(EventRecord.organisation_id == organisation_id)).all()
    assert [record.event_type for record in records] == ["databaseChange"]


def test_socket_rooms_are_per_organisation(client: TestClient, signup: Callable[..., dict[str, Any]]) -> None:
    first = signup()
    second = signup(email="office@otherschool.example", name="Other School")

    with client.websocket_connect(f"/ws/organisation?token={second['access_token']}") as websocket:
        client.post(
            "/api/curriculum/topics",
            json={"custom_id": "TOP-1", "topic": "Forces", "status": "Offering"},
            headers={"Authorization": f"Bearer {first['access_token']}"},
        )
        client.post(
            "/api/curriculum/topics",
            json={"custom_id": "TOP-9", "topic": "Light", "status": "Offering"},
            headers={"Authorization": f"Bearer {second['access_token']}"},
        )
        message = websocket.receive_json()

    assert message["data"]["full_document"]["custom_id"] == "TOP-9"


def test_socket_accepts_bearer_header(client: TestClient, signup: Callable[..., dict[str, Any]]) -> None:
    tokens = signup()
    with client.websocket_connect(
        "/ws/organisation",
        headers={"Authorization": f"Bearer {tokens['access_token']}"},
    ):
        assert organisation_hub.room_size(tokens["account"]["organisation_id"]) == 1
    assert organisation_hub.room_size(tokens["account"]["organisation_id"]) == 0


@pytest.mark.parametrize("url", ["/ws/organisation", "/ws/organisation?token=garbage"])
def test_socket_rejects_missing_or_bad_token(client: TestClient, url: str) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(url):
            pass
    assert exc_info.value.code == 4401


def test_socket_rejects_refresh_token(client: TestClient, signup: Callable[..., dict[str, Any]]) -> None:
    tokens = signup()
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws/organisation?token={tokens['refresh_token']}"):
            pass
    assert exc_info.value.code == 4401
