from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from schoolms.infra.auth import decode_access_token
from schoolms.infra.logging import get_logger
from schoolms.infra.realtime import organisation_hub
from schoolms.services.access_service import AccessError, AccessService

ws_router = APIRouter()
logger = get_logger(__name__)


def _extract_ws_token(websocket: WebSocket, token: str | None) -> str | None:
    if token:
        return token
    auth_header = websocket.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return None


@ws_router.websocket("/ws/organisation")
async def ws_organisation(websocket: WebSocket, token: str | None = Query(default=None)) -> None:
    """Join the caller's organisation room and receive databaseChange events."""
    resolved_token = _extract_ws_token(websocket, token)
    if not resolved_token:
        await websocket.close(code=4401)
        return
    try:
        claims = decode_access_token(resolved_token)
    except Exception:
        await websocket.close(code=4401)
        return
    organisation_id = claims.get("organisation_id")
    if not isinstance(organisation_id, str) or not organisation_id:
        await websocket.close(code=4401)
        return
    try:
        await run_in_threadpool(AccessService().resolve_access, str(claims.get("sub")), organisation_id)
    except AccessError as exc:
        logger.info("realtime.rejected", organisation_id=organisation_id, reason=str(exc))
        await websocket.close(code=4401)
        return

    await organisation_hub.connect(organisation_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        organisation_hub.disconnect(organisation_id, websocket)
