from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, create_engine

from schoolms import main as app_main
from schoolms.infra import db, redis_state

STRONG_PASSWORD = "Str0ng!Pass"


class FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def ping(self) -> bool:
        return True

    def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.values[key] = value

    def exists(self, key: str) -> int:
        return int(key in self.values)


@pytest.fixture()
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr(redis_state, "get_redis", lambda: fake)
    return fake


@pytest.fixture()
def client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    fake_redis: FakeRedis,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "schoolms_test.db"
    test_engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    test_client = TestClient(app_main.app)
    yield test_client
    test_client.close()


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def signup_payload(email: str = "office@greenfield.example", name: str = "Greenfield Academy") -> dict[str, str]:
    return {
        "organisation_name": name,
        "organisation_initial": "GA",
        "organisation_email": email,
        "organisation_phone": "+44 20 7946 0000",
        "organisation_country": "United Kingdom",
        "organisation_password": STRONG_PASSWORD,
        "organisation_confirm_password": STRONG_PASSWORD,
    }


@pytest.fixture()
def signup(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Register an organisation and return the token response."""

    def _signup(email: str = "office@greenfield.example", name: str = "Greenfield Academy") -> dict[str, Any]:
        response = client.post("/api/accounts/signup", json=signup_payload(email, name))
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


@pytest.fixture()
def admin_headers(signup: Callable[..., dict[str, Any]]) -> dict[str, str]:
    return auth_header(signup()["access_token"])


def staff_payload(custom_id: str = "STF-001", email: str = "ada@greenfield.example") -> dict[str, Any]:
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
        "skills": ["Mathematics"],
    }


def contract_payload(staff_id: str, custom_id: str = "CON-001", status: str = "Active") -> dict[str, Any]:
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


def create_staff_with_contract(
    client: TestClient,
    headers: dict[str, str],
    custom_id: str = "STF-001",
    email: str = "ada@greenfield.example",
) -> dict[str, Any]:
    staff = client.post("/api/staff/profiles", json=staff_payload(custom_id, email), headers=headers)
    assert staff.status_code == 201, staff.text
    contract = client.post(
        "/api/staff/contracts",
        json=contract_payload(staff.json()["id"], custom_id=f"CON-{custom_id}"),
        headers=headers,
    )
    assert contract.status_code == 201, contract.text
    return staff.json()


@pytest.fixture()
def make_staff(client: TestClient) -> Callable[..., dict[str, Any]]:
    def _make(headers: dict[str, str], custom_id: str = "STF-001", email: str = "ada@greenfield.example") -> dict[str, Any]:
        return create_staff_with_contract(client, headers, custom_id, email)

    return _make
