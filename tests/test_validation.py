from __future__ import annotations

from schoolms.domain.validation import (
    missing_data_message,
    missing_field,
    validate_email,
    validate_password,
)


def test_validate_password_requires_mixed_characters() -> None:
    assert validate_password("Str0ng!Pass")
    assert not validate_password("short1!")
    assert not validate_password("alllowercase1!")
    assert not validate_password("NoDigits!!")
    assert not validate_password("NoSymbols123")
    assert not validate_password(None)


def test_validate_email() -> None:
    assert validate_email("office@school.example")
    assert not validate_email("office@school")
    assert not validate_email("not an email")
    assert not validate_email("two..dots@school.example")
    assert not validate_email("office@school.test")
    assert not validate_email("")


def test_missing_field_returns_first_blank_required_field() -> None:
    values = {"custom_id": "PRG-1", "programme": "  ", "status": None}
    assert missing_field(values, ("custom_id", "programme", "status")) == "programme"
    assert missing_field(values, ("custom_id",)) is None


def test_missing_data_message_humanises_field_names() -> None:
    assert missing_data_message("course_full_title") == "Missing Data: Please fill in the course full title input"
