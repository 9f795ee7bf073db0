from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from schoolms.domain.models import ActivityLog, Organisation, Role
from schoolms.infra import db

PASSWORD = "Str0ng!Pass"


def _auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _signup_payload(**overrides: str) -> dict[str, str]:
    payload = {
        "organisation_name": "Riverside College",
        "organisation_initial": "RC",
        "organisation_email": "Admin@Riverside.example",
        "organisation_phone": "+44 161 496 0000",
        "organisation_country": "United Kingdom",
        "organisation_password": PASSWORD,
        "organisation_confirm_password": PASSWORD,
    }
    payload.update(overrides)
    return payload


def test_signup_creates_organisation_owner_and_absolute_admin_role(client: TestClient) -> None:
    response = client.post("/api/accounts/signup", json=_signup_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["access_token"]
    assert body["refresh_token"]
    account = body["account"]
    assert account["email"] == "admin@riverside.example"
    assert account["account_type"] == "Organization"
    set_cookies = response.headers.get_list("set-cookie")
    assert any(cookie.startswith("accessToken=") for cookie in set_cookies)
    assert any(cookie.startswith("refreshToken=") for cookie in set_cookies)

    with Session(db.get_engine()) as session:
        organisation = session.exec(select(Organisation)).one()
        role = session.get(Role, account["role_id"])
        logs = session.exec(select(ActivityLog).where(ActivityLog.organisation_id == organisation.id)).all()
    assert organisation.default_role_id == account["role_id"]
    assert role is not None and role.absolute_admin and role.name == "Absolute Admin"
    assert {log.log_action for log in logs} == {
        "Initial Organization Account Creation",
        "Initial Organization Default Role Creation - Absolute Admin",
        "Updating Organization Account with Default Role",
    }


def test_signup_validation_errors(client: TestClient) -> None:
    missing = client.post("/api/accounts/signup", json=_signup_payload(organisation_name=" "))
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Please provide all required fields"

    mismatch = client.post("/api/accounts/signup", json=_signup_payload(organisation_confirm_password="Other1!pass"))
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"] == "Passwords does not match"

    weak = client.post(
        "/api/accounts/signup",
        json=_signup_payload(organisation_password="weakpass", organisation_confirm_password="weakpass"),
    )
    assert weak.status_code == 400

    bad_email = client.post("/api/accounts/signup", json=_signup_payload(organisation_email="nope"))
    assert bad_email.status_code == 400
    assert bad_email.json()["detail"] == "Please provide a valid email address"


def test_duplicate_signup_conflicts(client: TestClient) -> None:
    assert client.post("/api/accounts/signup", json=_signup_payload()).status_code == 201
    again = client.post(
        "/api/accounts/signup",
        json=_signup_payload(organisation_email="admin@riverside.example"),
    )
    assert again.status_code == 409
    assert "Please sign in." in again.json()["detail"]


def test_signin_and_me(client: TestClient, signup: Callable[..., dict[str, Any]]) -> None:
    signup(email="owner@hillside.example", name="Hillside School")

    wrong = client.post("/api/accounts/signin", json={"email": "owner@hillside.example", "password": "Wrong1!pass"})
    assert wrong.status_code == 401
    unknown = client.post("/api/accounts/signin", json={"email": "ghost@hillside.example", "password": PASSWORD})
    assert unknown.status_code == 401

    response = client.post("/api/accounts/signin", json={"email": "OWNER@hillside.example", "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/accounts/me", headers=_auth_header(token))
    assert me.status_code == 200
    body = me.json()
    assert body["role"]["absolute_admin"] is True
    assert body["role"]["name"] == "Absolute Admin"
    assert "Create Programme" in body["permitted_actions"]

    with Session(db.get_engine()) as session:
        sign_ins = session.exec(select(ActivityLog).where(ActivityLog.log_action == "User Sign In")).all()
    assert len(sign_ins) == 1


def test_me_requires_a_valid_token(client: TestClient) -> None:
    assert client.get("/api/accounts/me").status_code == 401
    assert client.get("/api/accounts/me", headers=_auth_header("not-a-jwt")).status_code == 401


def test_refresh_token_cannot_be_used_as_access_token(
    client: TestClient,
    signup: Callable[..., dict[str, Any]],
) -> None:
    tokens = signup()
    assert client.get("/api/accounts/me", headers=_auth_header(tokens["refresh_token"])).status_code == 401


def test_refresh_issues_new_access_token(client: TestClient, signup: Callable[..., dict[str, Any]]) -> None:
    tokens = signup()
    response = client.post("/api/accounts/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    access_token = response.json()["access_token"]
    assert client.get("/api/accounts/me", headers=_auth_header(access_token)).status_code == 200

    assert client.post("/api/accounts/refresh", json={"refresh_token": tokens["access_token"]}).status_code == 401
    assert client.post("/api/accounts/refresh", json={}).status_code == 401


def test_signout_revokes_refresh_token(
    client: TestClient,
    signup: Callable[..., dict[str, Any]],
    fake_redis: Any,
) -> None:
    tokens = signup()
    response = client.post("/api/accounts/signout", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 204
    assert any(key.startswith("schoolms:revoked-refresh:") for key in fake_redis.values)

    refreshed = client.post("/api/accounts/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 401
    assert "revoked" in refreshed.json()["detail"]


def test_refresh_and_signout_with_cookie_only(
    client: TestClient,
    signup: Callable[..., dict[str, Any]],
    fake_redis: Any,
) -> None:
    tokens = signup()
    client.cookies.clear()
    client.cookies.set("refreshToken", tokens["refresh_token"])

    refreshed = client.post("/api/accounts/refresh")
    assert refreshed.status_code == 200
    assert client.get("/api/accounts/me", headers=_auth_header(refreshed.json()["access_token"])).status_code == 200

    assert client.post("/api/accounts/signout").status_code == 204
    client.cookies.set("refreshToken", tokens["refresh_token"])
    rejected = client.post("/api/accounts/refresh")
    assert rejected.status_code == 401
    assert "revoked" in rejected.json()["detail"]

    client.cookies.clear()
    assert client.post("/api/accounts/refresh").status_code == 401
