from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

OMITTED_FIELDS = frozenset({"created_at", "updated_at", "password_hash", "search_text"})


def generate_search_text(fields: list[Any]) -> str:
    return "|".join(str(item) for item in fields if item is not None and str(item) != "")


def to_document(record: Any) -> dict[str, Any]:
    """JSON-safe snapshot of a row, without timestamps or secrets."""
    if isinstance(record, BaseModel):
        raw = record.model_dump()
    elif isinstance(record, dict):
        raw = dict(record)
    else:
        raise TypeError(f"cannot snapshot {type(record).__name__}")
    return {key: _json_safe(value) for key, value in raw.items() if key not in OMITTED_FIELDS}


def _json_safe(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(item) for item in value]
    return value


def creation_change(document: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"kind": "N", "rhs": document}]


def deletion_change(document: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"kind": "D", "lhs": document}]


def record_diff(lhs: Any, rhs: Any, path: list[Any] | None = None) -> list[dict[str, Any]]:
    """Structural diff in deep-diff notation.

    ``N`` new key, ``D`` deleted key, ``E`` edited value, ``A`` array change
    carrying the ``index`` and a nested ``item`` change.
    """
    path = path or []
    if isinstance(lhs, dict) and isinstance(rhs, dict):
        changes: list[dict[str, Any]] = []
        for key in lhs:
            if key not in rhs:
                changes.append({"kind": "D", "path": [*path, key], "lhs": lhs[key]})
            else:
                changes.extend(record_diff(lhs[key], rhs[key], [*path, key]))
        for key in rhs:
            if key not in lhs:
                changes.append({"kind": "N", "path": [*path, key], "rhs": rhs[key]})
        return changes

    if isinstance(lhs, list) and isinstance(rhs, list):
        changes = []
        shared = min(len(lhs), len(rhs))
        for index in range(shared):
            changes.extend(record_diff(lhs[index], rhs[index], [*path, index]))
        for index in range(len(rhs) - 1, shared - 1, -1):
            changes.append({"kind": "A", "path": list(path), "index": index, "item": {"kind": "N", "rhs": rhs[index]}})
        for index in range(len(lhs) - 1, shared - 1, -1):
            changes.append({"kind": "A", "path": list(path), "index": index, "item": {"kind": "D", "lhs": lhs[index]}})
        return changes

    if lhs == rhs and type(lhs) is type(rhs):
        return []
    entry: dict[str, Any] = {"kind": "E", "lhs": lhs, "rhs": rhs}
    if path:
        entry["path"] = list(path)
    return [entry]
