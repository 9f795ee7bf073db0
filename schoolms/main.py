from __future__ import annotations

import traceback
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from schoolms.api.routers import accounts, admin, curriculum, realtime, staff, students
from schoolms.infra.db import check_db_ready
from schoolms.infra.logging import APP_ENV, get_logger, setup_logging
from schoolms.infra.redis_state import check_redis_ready
from schoolms.infra.usage import UsageMiddleware
from schoolms.services.billing_service import BillingService

setup_logging()
logger = get_logger(__name__)


def bill_usage(organisation_id: str, usage: dict[str, float]) -> None:
    BillingService().bill_organisation(organisation_id, usage)


app = FastAPI(
    title="schoolms",
    description="Multi-tenant school management backend: people, curriculum, access control and usage billing.",
    version="0.1.0",
)

app.add_middleware(UsageMiddleware, biller=bill_usage)

app.include_router(accounts.router, prefix="/api/accounts", tags=["accounts"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(staff.router, prefix="/api/staff", tags=["staff"])
app.include_router(students.router, prefix="/api/students", tags=["students"])
app.include_router(curriculum.router, prefix="/api/curriculum", tags=["curriculum"])
app.include_router(realtime.ws_router, tags=["realtime"])


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request.failed", path=request.url.path, error=str(exc), exc_info=exc)
    content: dict[str, Any] = {"message": str(exc) or "Internal Server Error", "stack": None}
    if APP_ENV == "development":
        content["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=content)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict[str, object]:
    db_ok = check_db_ready()
    redis_ok = check_redis_ready()
    checks = {
        "db": "ok" if db_ok else "fail",
        "redis": "ok" if redis_ok else "fail",
    }
    if not (db_ok and redis_ok):
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
