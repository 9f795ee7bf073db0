from __future__ import annotations

import json
import secrets
from datetime import date, datetime
from typing import Any

BYTES_PER_GB = 1024**3
CUSTOM_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def get_object_size(obj: Any) -> float:
    """UTF-8 JSON size of ``obj`` in gigabytes; empty values weigh nothing."""
    if obj is None or not obj:
        return 0.0
    encoded = json.dumps(obj, default=str, separators=(",", ":"), ensure_ascii=False)
    return len(encoded.encode("utf-8")) / BYTES_PER_GB


def to_negative(value: float) -> float:
    if value <= 0:
        return value
    return -abs(value)


def _month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime("%B %Y")


def _shift_month(now: date, months: int) -> tuple[int, int]:
    index = now.year * 12 + (now.month - 1) + months
    return index // 12, index % 12 + 1


def current_month(now: date | datetime | None = None) -> str:
    now = now or datetime.now()
    return _month_label(now.year, now.month)


def last_month(now: date | datetime | None = None) -> str:
    return _month_label(*_shift_month(now or datetime.now(), -1))


def next_billing_date(now: date | datetime | None = None) -> str:
    return f"5 {_month_label(*_shift_month(now or datetime.now(), 1))}"


def last_billing_date(now: date | datetime | None = None) -> str:
    return f"5 {_month_label(*_shift_month(now or datetime.now(), -1))}"


def add_vat(amount: float, vat_percentage: float) -> float:
    return amount + (amount * vat_percentage) / 100


def generate_custom_id(prefix: str | None = None, length: int = 7) -> str:
    suffix = "".join(secrets.choice(CUSTOM_ID_ALPHABET) for _ in range(length))
    return f"{prefix}-{suffix}" if prefix else suffix
