from __future__ import annotations

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from schoolms.domain.models import EventEnvelope, EventRecord
from schoolms.infra import db
from schoolms.infra.events import DATABASE_CHANGE_EVENT, EventBus, emit_to_organisation


def test_event_bus_publish_and_subscribe() -> None:
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    bus = EventBus()
    seen: list[str] = []

    def handler(event: EventEnvelope) -> None:
        seen.append(event.event_id)

    event = EventEnvelope(
        event_type=DATABASE_CHANGE_EVENT,
        organisation_id="org-a",
        payload={"collection": "students", "full_document": None, "change_operation": "delete"},
    )
    bus.subscribe(DATABASE_CHANGE_EVENT, handler)

    with Session(engine) as session:
        bus.publish(event, session=session)
        session.commit()

    with Session(engine) as session:
        stored = session.exec(select(EventRecord)).all()

    assert len(stored) == 1
    assert stored[0].event_id == event.event_id
    assert stored[0].organisation_id == "org-a"
    assert seen == [event.event_id]


def test_failing_handler_does_not_block_others() -> None:
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    bus = EventBus()
    seen: list[str] = []

    def broken(event: EventEnvelope) -> None:
        raise RuntimeError("socket gone")

    bus.subscribe(DATABASE_CHANGE_EVENT, broken)
    bus.subscribe("*", lambda event: seen.append(event.event_type))

    event = EventEnvelope(event_type=DATABASE_CHANGE_EVENT, organisation_id="org-a", payload={})
    with Session(engine) as session:
        bus.publish(event, session=session)

    assert seen == [DATABASE_CHANGE_EVENT]

    bus.unsubscribe(DATABASE_CHANGE_EVENT, broken)
    with Session(engine) as session:
        bus.publish(EventEnvelope(event_type=DATABASE_CHANGE_EVENT, organisation_id="org-a", payload={}), session=session)
    assert seen == [DATABASE_CHANGE_EVENT, DATABASE_CHANGE_EVENT]


def test_emit_to_organisation_persists_database_change(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(db, "engine", engine)

    emit_to_organisation("org-b", "topics", {"id": "t-1"}, "create", actor_id="acc-1")

    with Session(engine) as session:
        stored = session.exec(select(EventRecord)).one()
    assert stored.event_type == DATABASE_CHANGE_EVENT
    assert stored.actor_id == "acc-1"
    assert stored.payload == {
        "collection": "topics",
        "full_document": {"id": "t-1"},
        "change_operation": "create",
    }
