from __future__ import annotations

import asyncio
import threading
from typing import Any

from fastapi import WebSocket

from schoolms.domain.models import EventEnvelope
from schoolms.infra.events import DATABASE_CHANGE_EVENT, event_bus
from schoolms.infra.logging import get_logger

logger = get_logger(__name__)


class OrganisationHub:
    """Websocket rooms keyed by organisation id.

    Services publish from worker threads, so each connection remembers the
    loop it was accepted on and sends are scheduled back onto that loop.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, dict[WebSocket, asyncio.AbstractEventLoop]] = {}
        self._lock = threading.Lock()

    async def connect(self, organisation_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        loop = asyncio.get_running_loop()
        with self._lock:
            self._rooms.setdefault(organisation_id, {})[websocket] = loop
        logger.info("realtime.joined", organisation_id=organisation_id)

    def disconnect(self, organisation_id: str, websocket: WebSocket) -> None:
        with self._lock:
            room = self._rooms.get(organisation_id, {})
            room.pop(websocket, None)
            if not room and organisation_id in self._rooms:
                del self._rooms[organisation_id]

    def room_size(self, organisation_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(organisation_id, {}))

    async def _send(self, organisation_id: str, websocket: WebSocket, message: dict[str, Any]) -> None:
        try:
            await websocket.send_json(message)
        except Exception:
            self.disconnect(organisation_id, websocket)

    def broadcast(self, organisation_id: str, message: dict[str, Any]) -> None:
        with self._lock:
            targets = list(self._rooms.get(organisation_id, {}).items())
        for websocket, loop in targets:
            if loop.is_closed():
                self.disconnect(organisation_id, websocket)
                continue
            asyncio.run_coroutine_threadsafe(self._send(organisation_id, websocket, message), loop)

    def handle_event(self, event: EventEnvelope) -> None:
        self.broadcast(
            event.organisation_id,
            {"event": event.event_type, "data": event.payload},
        )


organisation_hub = OrganisationHub()
event_bus.subscribe(DATABASE_CHANGE_EVENT, organisation_hub.handle_event)
