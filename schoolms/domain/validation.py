from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

PASSWORD_STRENGTH = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[!@#$%^&*(),.?\":{}|<>~+\-]).{8,}$")
EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)


def validate_password(password: str | None) -> bool:
    if not password:
        return False
    return PASSWORD_STRENGTH.match(password.strip()) is not None


def validate_email(email: str | None) -> bool:
    if not email:
        return False
    try:
        EMAIL_ADAPTER.validate_python(email.strip())
    except PydanticValidationError:
        return False
    return True


def humanize_field(field: str) -> str:
    return field.replace("_", " ")


def missing_field(values: Mapping[str, Any], required: Iterable[str]) -> str | None:
    """First required field that is absent or blank."""
    for field in required:
        value = values.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return field
    return None


def missing_data_message(field: str) -> str:
    return f"Missing Data: Please fill in the {humanize_field(field)} input"
