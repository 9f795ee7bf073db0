from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

from sqlmodel import Session

from schoolms.domain.models import EventEnvelope, EventRecord
from schoolms.infra.db import get_engine
from schoolms.infra.logging import get_logger

EventHandler = Callable[[EventEnvelope], None]

DATABASE_CHANGE_EVENT = "databaseChange"

logger = get_logger(__name__)


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        if event_type in self._subscribers and handler in self._subscribers[event_type]:
            self._subscribers[event_type].remove(handler)

    def publish(self, event: EventEnvelope, session: Session | None = None) -> None:
        should_commit = session is None
        if session is None:
            session = Session(get_engine())
        try:
            record = EventRecord(
                event_id=event.event_id,
                event_type=event.event_type,
                organisation_id=event.organisation_id,
                ts=event.ts,
                actor_id=event.actor_id,
                payload=event.payload,
            )
            session.add(record)
            if should_commit:
                session.commit()
        finally:
            if should_commit:
                session.close()

        handlers = [*self._subscribers.get(event.event_type, []), *self._subscribers.get("*", [])]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("events.handler_failed", event_type=event.event_type)

    def publish_dict(
        self,
        event_type: str,
        organisation_id: str,
        payload: dict[str, Any],
        actor_id: str | None = None,
    ) -> EventEnvelope:
        event = EventEnvelope(
            event_type=event_type,
            organisation_id=organisation_id,
            actor_id=actor_id,
            payload=payload,
        )
        self.publish(event)
        return event


event_bus = EventBus()


def emit_to_organisation(
    organisation_id: str,
    collection: str,
    full_document: dict[str, Any] | None,
    change_operation: str,
    actor_id: str | None = None,
) -> EventEnvelope:
    """Publish a ``databaseChange`` event for every socket in the organisation room."""
    return event_bus.publish_dict(
        DATABASE_CHANGE_EVENT,
        organisation_id,
        {
            "collection": collection,
            "full_document": full_document,
            "change_operation": change_operation,
        },
        actor_id=actor_id,
    )
