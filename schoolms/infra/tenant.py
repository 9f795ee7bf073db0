"""Request scoped log context.

Bound from the async auth dependency, so the values travel with the copied
context into the worker thread that runs the endpoint and its services.
"""

from __future__ import annotations

import structlog

REQUEST_CONTEXT_KEYS = ("organisation_id", "account_id")


def set_request_context(organisation_id: str | None, account_id: str | None) -> None:
    structlog.contextvars.bind_contextvars(organisation_id=organisation_id, account_id=account_id)


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars(*REQUEST_CONTEXT_KEYS)
