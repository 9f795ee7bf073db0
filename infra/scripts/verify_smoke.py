from __future__ import annotations

import asyncio
import json
import os
import time
from typing import Any
from urllib.parse import urlsplit, urlunsplit
from uuid import uuid4

import httpx
import websockets

SMOKE_PASSWORD = "Sm0ke!Check"


def _assert_status(response: httpx.Response, expected: int | tuple[int, ...]) -> None:
    expected_codes = (expected,) if isinstance(expected, int) else expected
    if response.status_code not in expected_codes:
        raise RuntimeError(
            f"{response.request.method} {response.request.url} expected {expected_codes}, "
            f"got {response.status_code}: {response.text}"
        )


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _to_ws_base_url(http_base_url: str) -> str:
    parsed = urlsplit(http_base_url)
    if parsed.scheme not in {"http", "https"}:
        raise RuntimeError(f"unsupported APP_BASE_URL scheme: {parsed.scheme}")
    ws_scheme = "wss" if parsed.scheme == "https" else "ws"
    return urlunsplit((ws_scheme, parsed.netloc, "", "", ""))


async def _wait_ok(client: httpx.AsyncClient, path: str, timeout_seconds: float = 60.0) -> None:
    deadline = time.monotonic() + timeout_seconds
    last_status = "n/a"
    last_body = ""
    while time.monotonic() < deadline:
        try:
            response = await client.get(path)
            if response.status_code == 200:
                return
            last_status = str(response.status_code)
            last_body = response.text
        except httpx.HTTPError as exc:
            last_status = "http_error"
            last_body = str(exc)
        await asyncio.sleep(1.0)
    raise RuntimeError(f"timeout waiting for {path}, last_status={last_status}, detail={last_body}")


async def _signup(client: httpx.AsyncClient, run_id: str) -> dict[str, Any]:
    response = await client.post(
        "/api/accounts/signup",
        json={
            "organisation_name": f"Smoke School {run_id}",
            "organisation_initial": "SS",
            "organisation_email": f"smoke-{run_id}@schoolms.example",
            "organisation_phone": "+44 20 7946 0999",
            "organisation_country": "United Kingdom",
            "organisation_password": SMOKE_PASSWORD,
            "organisation_confirm_password": SMOKE_PASSWORD,
        },
    )
    _assert_status(response, 201)
    return response.json()


async def _run() -> None:
    base_url = os.getenv("APP_BASE_URL", "http://app:8000").rstrip("/")
    ws_base_url = _to_ws_base_url(base_url)
    run_id = uuid4().hex[:8]

    timeout = httpx.Timeout(20.0)
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        await _wait_ok(client, "/healthz")
        await _wait_ok(client, "/readyz")

        tokens = await _signup(client, run_id)
        access_token = tokens["access_token"]
        headers = _auth_headers(access_token)

        me_resp = await client.get("/api/accounts/me", headers=headers)
        _assert_status(me_resp, 200)

        ws_url = f"{ws_base_url}/ws/organisation?token={access_token}"
        async with websockets.connect(ws_url, open_timeout=10.0, close_timeout=5.0) as websocket:
            topic_resp = await client.post(
                "/api/curriculum/topics",
                json={"custom_id": f"SMOKE-{run_id}", "topic": "Smoke check", "status": "Offering"},
                headers=headers,
            )
            _assert_status(topic_resp, 201)
            topic_id = topic_resp.json()["id"]

            message = await asyncio.wait_for(websocket.recv(), timeout=10.0)
            raw_message = message.decode() if isinstance(message, bytes) else message
            payload = json.loads(raw_message)
            data = payload.get("data", {})
            if payload.get("event") != "databaseChange" or data.get("collection") != "topics":
                raise RuntimeError(f"unexpected websocket payload: {payload}")
            if (data.get("full_document") or {}).get("id") != topic_id:
                raise RuntimeError("websocket change does not reference the created topic")

        list_resp = await client.get("/api/curriculum/topics", headers=headers)
        _assert_status(list_resp, 200)
        if topic_id not in {item["id"] for item in list_resp.json()["items"]}:
            raise RuntimeError("created topic missing from topic list")

        update_resp = await client.patch(
            f"/api/curriculum/topics/{topic_id}",
            json={"status": "Not Offering"},
            headers=headers,
        )
        _assert_status(update_resp, 200)
        if update_resp.json()["status"] != "Not Offering":
            raise RuntimeError("topic update failed to persist status")

        latest_resp = await client.get("/api/admin/activity-logs/latest", headers=headers)
        _assert_status(latest_resp, 200)
        if not latest_resp.json()["log_action"].endswith("Update"):
            raise RuntimeError(f"unexpected latest activity log: {latest_resp.json()}")

        delete_resp = await client.delete(f"/api/curriculum/topics/{topic_id}", headers=headers)
        _assert_status(delete_resp, 204)

        signout_resp = await client.post(
            "/api/accounts/signout",
            json={"refresh_token": tokens["refresh_token"]},
        )
        _assert_status(signout_resp, 204)
        refresh_resp = await client.post(
            "/api/accounts/refresh",
            json={"refresh_token": tokens["refresh_token"]},
        )
        _assert_status(refresh_resp, 401)

    print("verify_smoke: healthz/readyz + signup + topic CRUD + ws + signout ok")


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
