from __future__ import annotations

from typing import Any

from sqlmodel import Session

from schoolms.domain.billing import get_object_size
from schoolms.domain.changes import generate_search_text
from schoolms.domain.models import ActivityLog, Organisation
from schoolms.infra.usage import record_usage


def activity_logging_enabled(organisation: Organisation) -> bool:
    return bool((organisation.settings or {}).get("log_activity", True))


def write_activity_log(
    session: Session,
    *,
    organisation: Organisation,
    account_id: str,
    log_action: str,
    record_model: str,
    record_id: str,
    record_name: str | None,
    record_change: list[dict[str, Any]],
    always: bool = False,
) -> ActivityLog | None:
    """Stage an activity log entry in ``session`` when the organisation keeps logs.

    ``always`` ignores the setting; used when the setting itself changes.
    """
    if not always and not activity_logging_enabled(organisation):
        return None
    log = ActivityLog(
        organisation_id=organisation.id,
        account_id=account_id,
        log_action=log_action,
        record_model=record_model,
        record_id=record_id,
        record_name=record_name,
        record_change=record_change,
        search_text=generate_search_text([log_action, record_model, record_name]),
    )
    session.add(log)
    size = get_object_size(log.model_dump(mode="json"))
    record_usage(
        database_operation=1,
        database_data_transfer=size,
        database_storage_and_backup=size * 2,
    )
    return log
