"""Per-request usage metering.

Services call :func:`record_usage` while handling a request; the middleware
adds compute seconds and response bandwidth once the response is ready and
hands the totals to the biller for the caller's organisation.
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from schoolms.infra.logging import get_logger
from schoolms.infra.tenant import clear_request_context

USAGE_METERS = (
    "render_bandwidth",
    "render_compute_seconds",
    "database_storage_and_backup",
    "database_operation",
    "database_data_transfer",
    "cloud_storage_gb_stored",
    "cloud_storage_gb_downloaded",
    "cloud_storage_upload_operation",
    "cloud_storage_download_operation",
)
UNMETERED_PATHS = frozenset({"/healthz", "/readyz"})
BYTES_PER_GB = 1024**3

Biller = Callable[[str, dict[str, float]], None]

logger = get_logger(__name__)


@dataclass
class UsageRecorder:
    organisation_id: str | None = None
    totals: dict[str, float] = field(default_factory=lambda: defaultdict(float))

    def add(self, meter: str, value: float) -> None:
        if meter not in USAGE_METERS or not value:
            return
        self.totals[meter] += float(value)

    def snapshot(self) -> dict[str, float]:
        return {meter: value for meter, value in self.totals.items() if value}


_recorder_ctx: ContextVar[UsageRecorder | None] = ContextVar("usage_recorder", default=None)


def start_recording() -> UsageRecorder:
    recorder = UsageRecorder()
    _recorder_ctx.set(recorder)
    return recorder


def current_recorder() -> UsageRecorder | None:
    return _recorder_ctx.get()


def record_usage(**meters: float) -> None:
    recorder = _recorder_ctx.get()
    if recorder is None:
        return
    for meter, value in meters.items():
        recorder.add(meter, value)


def bill_to(organisation_id: str) -> None:
    recorder = _recorder_ctx.get()
    if recorder is not None:
        recorder.organisation_id = organisation_id


class UsageMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, biller: Biller) -> None:
        super().__init__(app)
        self._biller = biller

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in UNMETERED_PATHS:
            return await call_next(request)

        clear_request_context()
        recorder = start_recording()
        started = time.perf_counter()
        response = await call_next(request)

        if recorder.organisation_id is None:
            return response

        recorder.add("render_compute_seconds", time.perf_counter() - started + 1)
        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            recorder.add("render_bandwidth", int(content_length) / BYTES_PER_GB)

        with structlog.contextvars.bound_contextvars(organisation_id=recorder.organisation_id):
            try:
                await run_in_threadpool(self._biller, recorder.organisation_id, recorder.snapshot())
            except Exception:
                logger.exception("usage.billing_failed", path=request.url.path)
        return response
