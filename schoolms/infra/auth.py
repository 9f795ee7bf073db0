from __future__ import annotations

import hashlib
import os
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MIN = int(os.getenv("JWT_EXPIRES_MIN", "60"))
JWT_REFRESH_EXPIRES_DAYS = int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "30"))
PASSWORD_SALT = os.getenv("PASSWORD_SALT", "dev-password-salt")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(raw_password: str) -> str:
    return hashlib.sha256(f"{PASSWORD_SALT}:{raw_password}".encode()).hexdigest()


def verify_password(raw_password: str, password_hash: str) -> bool:
    return hash_password(raw_password) == password_hash


def _encode(payload: dict[str, Any], secret: str, expire_delta: timedelta) -> str:
    now = datetime.now(UTC)
    claims = {
        **payload,
        "iat": int(now.timestamp()),
        "exp": int((now + expire_delta).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def create_access_token(
    *,
    account_id: str,
    organisation_id: str,
    role_id: str | None,
    expires_minutes: int | None = None,
) -> str:
    return _encode(
        {
            "sub": account_id,
            "organisation_id": organisation_id,
            "role_id": role_id,
            "type": ACCESS_TOKEN_TYPE,
        },
        JWT_SECRET,
        timedelta(minutes=expires_minutes or JWT_EXPIRES_MIN),
    )


def create_refresh_token(*, account_id: str, organisation_id: str, role_id: str | None) -> str:
    return _encode(
        {
            "sub": account_id,
            "organisation_id": organisation_id,
            "role_id": role_id,
            "type": REFRESH_TOKEN_TYPE,
            "jti": uuid.uuid4().hex,
        },
        JWT_REFRESH_SECRET,
        timedelta(days=JWT_REFRESH_EXPIRES_DAYS),
    )


def _decode(token: str, secret: str, token_type: str) -> dict[str, Any]:
    decoded = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    if not isinstance(decoded, dict):
        raise ValueError("Invalid token payload")
    if decoded.get("type") != token_type:
        raise ValueError("Unexpected token type")
    return decoded


def decode_access_token(token: str) -> dict[str, Any]:
    return _decode(token, JWT_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict[str, Any]:
    return _decode(token, JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)
