from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import func
from sqlmodel import Session, SQLModel, col, select
from sqlmodel.sql.expression import SelectOfScalar

IGNORED_FILTER_VALUES = frozenset({"", "all", "undefined", "null"})
RESERVED_PARAMS = frozenset({"search", "limit", "cursor_type", "next_cursor", "prev_cursor"})
DEFAULT_LIMIT = 20
MAX_LIMIT = 200


class InvalidFilterError(ValueError):
    pass


class PageQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: str = ""
    limit: int = PydanticField(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    cursor_type: Literal["next", "prev"] | None = None
    next_cursor: str | None = None
    prev_cursor: str | None = None
    filters: dict[str, str] = PydanticField(default_factory=dict)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> PageQuery:
        """Split raw query params into paging controls and column filters."""
        cursor_type = params.get("cursor_type") or None
        if cursor_type not in (None, "next", "prev"):
            cursor_type = None
        limit_raw = params.get("limit")
        try:
            limit = int(limit_raw) if limit_raw not in (None, "") else DEFAULT_LIMIT
        except (TypeError, ValueError):
            limit = DEFAULT_LIMIT
        return cls(
            search=str(params.get("search") or ""),
            limit=min(max(limit, 1), MAX_LIMIT),
            cursor_type=cursor_type,
            next_cursor=params.get("next_cursor") or None,
            prev_cursor=params.get("prev_cursor") or None,
            filters={
                key: str(value)
                for key, value in params.items()
                if key not in RESERVED_PARAMS and value is not None
            },
        )


class PageResult(BaseModel):
    items: list[Any]
    total_count: int
    chunk_count: int
    next_cursor: str | None = None
    prev_cursor: str | None = None
    has_next: bool


def clean_filters(model: type[SQLModel], filters: dict[str, str], allowed: frozenset[str]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, raw in filters.items():
        if key not in allowed or raw in IGNORED_FILTER_VALUES:
            continue
        annotation = model.model_fields[key].annotation
        if isinstance(annotation, type) and issubclass(annotation, Enum):
            try:
                cleaned[key] = annotation(raw)
            except ValueError as exc:
                raise InvalidFilterError(f"invalid value for {key}: {raw}") from exc
            continue
        if annotation is bool:
            cleaned[key] = raw.lower() == "true"
            continue
        cleaned[key] = raw
    return cleaned


def build_statement(
    model: type[SQLModel],
    organisation_id: str,
    query: PageQuery,
    *,
    allowed_filters: frozenset[str],
    with_cursor: bool = True,
    extra_conditions: list[Any] | None = None,
) -> SelectOfScalar[Any]:
    id_col = col(getattr(model, "id"))
    statement = select(model).where(col(getattr(model, "organisation_id")) == organisation_id)
    if query.search:
        statement = statement.where(col(getattr(model, "search_text")).ilike(f"%{query.search}%"))
    for key, value in clean_filters(model, query.filters, allowed_filters).items():
        statement = statement.where(col(getattr(model, key)) == value)
    for condition in extra_conditions or []:
        statement = statement.where(condition)
    if with_cursor:
        if query.cursor_type == "next" and query.next_cursor:
            statement = statement.where(id_col < query.next_cursor)
        elif query.cursor_type == "prev" and query.prev_cursor:
            statement = statement.where(id_col > query.prev_cursor)
    return statement


def paginate(
    session: Session,
    model: type[SQLModel],
    organisation_id: str,
    query: PageQuery,
    *,
    allowed_filters: frozenset[str],
    extra_conditions: list[Any] | None = None,
) -> PageResult:
    id_col = col(getattr(model, "id"))
    statement = build_statement(
        model,
        organisation_id,
        query,
        allowed_filters=allowed_filters,
        extra_conditions=extra_conditions,
    )
    reading_backwards = query.cursor_type == "prev" and bool(query.prev_cursor)
    ordered = statement.order_by(id_col.asc() if reading_backwards else id_col.desc())
    rows = list(session.exec(ordered.limit(query.limit + 1)).all())

    count_statement = build_statement(
        model,
        organisation_id,
        query,
        allowed_filters=allowed_filters,
        with_cursor=False,
        extra_conditions=extra_conditions,
    )
    total_count = session.exec(select(func.count()).select_from(count_statement.subquery())).one()

    has_next = len(rows) > query.limit or query.cursor_type == "prev"
    if len(rows) > query.limit:
        rows = rows[: query.limit]
    if reading_backwards:
        rows.reverse()

    return PageResult(
        items=rows,
        total_count=int(total_count),
        chunk_count=len(rows),
        next_cursor=rows[-1].id if rows else None,
        prev_cursor=rows[0].id if rows else None,
        has_next=has_next,
    )


def _utc_day_start(raw: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise InvalidFilterError("from and to must be ISO dates") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    parsed = parsed.astimezone(UTC)
    return parsed.replace(hour=0, minute=0, second=0, microsecond=0)


def date_range_conditions(model: type[SQLModel], filters: dict[str, str], column: str = "created_at") -> list[Any]:
    """``from``/``to`` filters as an inclusive day range on ``column``."""
    raw_from = filters.get("from")
    raw_to = filters.get("to")
    if not raw_from or not raw_to:
        return []
    start = _utc_day_start(raw_from)
    end = _utc_day_start(raw_to) + timedelta(days=1)
    target = col(getattr(model, column))
    return [target >= start, target < end]
