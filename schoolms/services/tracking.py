"""Side effects shared by every mutation: activity log, usage, room event.

Logs and usage are staged inside the caller's session before commit; the
room event is emitted by :func:`emit_change` once the commit succeeded.
"""

from __future__ import annotations

from typing import Any

from sqlmodel import Session, SQLModel

from schoolms.domain.billing import get_object_size, to_negative
from schoolms.domain.changes import creation_change, deletion_change, record_diff, to_document
from schoolms.infra.audit import write_activity_log
from schoolms.infra.events import emit_to_organisation
from schoolms.infra.usage import record_usage
from schoolms.services.access_service import AccessContext

CREATE = "create"
UPDATE = "update"
DELETE = "delete"


def record_read(rows: Any, operations: int = 1) -> None:
    if isinstance(rows, list):
        payload: Any = [to_document(row) for row in rows]
    elif rows is None:
        payload = None
    else:
        payload = to_document(rows)
    record_usage(database_operation=operations, database_data_transfer=get_object_size(payload))


def track_creation(
    session: Session,
    context: AccessContext,
    record: SQLModel,
    model_name: str,
    record_name: str | None,
) -> dict[str, Any]:
    document = to_document(record)
    size = get_object_size(document)
    record_usage(
        database_operation=1,
        database_data_transfer=size,
        database_storage_and_backup=size * 2,
    )
    write_activity_log(
        session,
        organisation=context.organisation,
        account_id=context.account_id,
        log_action=f"{model_name} Creation",
        record_model=model_name,
        record_id=str(getattr(record, "id")),
        record_name=record_name,
        record_change=creation_change(document),
    )
    return document


def track_update(
    session: Session,
    context: AccessContext,
    before: dict[str, Any],
    record: SQLModel,
    model_name: str,
    record_name: str | None,
) -> dict[str, Any]:
    after = to_document(record)
    storage_delta = get_object_size(after) - get_object_size(before)
    record_usage(
        database_operation=1,
        database_data_transfer=get_object_size(after),
        database_storage_and_backup=storage_delta * 2,
    )
    write_activity_log(
        session,
        organisation=context.organisation,
        account_id=context.account_id,
        log_action=f"{model_name} Update",
        record_model=model_name,
        record_id=str(getattr(record, "id")),
        record_name=record_name,
        record_change=record_diff(before, after),
    )
    return after


def track_deletion(
    session: Session,
    context: AccessContext,
    record: SQLModel,
    model_name: str,
    record_name: str | None,
) -> dict[str, Any]:
    document = to_document(record)
    size = get_object_size(document)
    record_usage(
        database_operation=1,
        database_data_transfer=size,
        database_storage_and_backup=to_negative(size * 2),
    )
    write_activity_log(
        session,
        organisation=context.organisation,
        account_id=context.account_id,
        log_action=f"{model_name} Delete",
        record_model=model_name,
        record_id=str(getattr(record, "id")),
        record_name=record_name,
        record_change=deletion_change(document),
    )
    return document


def emit_change(context: AccessContext, collection: str, document: dict[str, Any], operation: str) -> None:
    emit_to_organisation(
        context.organisation_id,
        collection,
        document,
        operation,
        actor_id=context.account_id,
    )
