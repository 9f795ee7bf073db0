"""Organisation scoped record store shared by the people and curriculum services."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, col, select

from schoolms.domain.changes import generate_search_text, to_document
from schoolms.domain.models import now_utc
from schoolms.domain.pagination import PageQuery, PageResult, paginate
from schoolms.domain.validation import missing_data_message, missing_field
from schoolms.infra.db import get_engine
from schoolms.services.access_service import AccessContext
from schoolms.services.tracking import (
    CREATE,
    DELETE,
    UPDATE,
    emit_change,
    record_read,
    track_creation,
    track_deletion,
    track_update,
)

RecordT = TypeVar("RecordT", bound=SQLModel)
Hook = Callable[[Session, Any], None]


class RecordError(Exception):
    pass


class NotFoundError(RecordError):
    pass


class ConflictError(RecordError):
    pass


class ValidationError(RecordError):
    pass


@dataclass(frozen=True)
class Resource(Generic[RecordT]):
    model: type[RecordT]
    label: str
    collection: str
    name_field: str
    search_fields: tuple[str, ...]
    required: tuple[str, ...] = ()
    filters: frozenset[str] = frozenset()
    unique_fields: tuple[str, ...] = ("custom_id",)


class RecordStore(Generic[RecordT]):
    def __init__(self, resource: Resource[RecordT]) -> None:
        self.resource = resource

    @property
    def model(self) -> type[RecordT]:
        return self.resource.model

    def session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def get(self, session: Session, organisation_id: str, record_id: str) -> RecordT | None:
        model: Any = self.model
        statement = select(model).where(model.organisation_id == organisation_id).where(model.id == record_id)
        return session.exec(statement).first()

    def require(self, session: Session, organisation_id: str, record_id: str) -> RecordT:
        record = self.get(session, organisation_id, record_id)
        if record is None:
            raise NotFoundError(f"{self.resource.label} not found")
        return record

    def check_required(self, values: Mapping[str, Any]) -> None:
        field = missing_field(values, self.resource.required)
        if field is not None:
            raise ValidationError(missing_data_message(field))

    def _ensure_unique(
        self,
        session: Session,
        organisation_id: str,
        values: Mapping[str, Any],
        exclude_id: str | None = None,
    ) -> None:
        model: Any = self.model
        for field in self.resource.unique_fields:
            value = values.get(field)
            if value in (None, ""):
                continue
            statement = (
                select(model.id)
                .where(model.organisation_id == organisation_id)
                .where(getattr(model, field) == value)
            )
            if exclude_id is not None:
                statement = statement.where(model.id != exclude_id)
            if session.exec(statement).first() is not None:
                raise ConflictError(
                    f"{self.resource.label} with this {field.replace('_', ' ')} already exists: {value}"
                )

    def _search_text(self, record: RecordT) -> str:
        return generate_search_text([getattr(record, field, None) for field in self.resource.search_fields])

    def _name(self, record: RecordT) -> str | None:
        value = getattr(record, self.resource.name_field, None)
        return str(value) if value is not None else None

    def _commit(self, session: Session) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError(f"{self.resource.label} conflicts with an existing record") from exc

    def create(self, context: AccessContext, values: dict[str, Any], before_save: Hook | None = None) -> RecordT:
        self.check_required(values)
        with self.session() as session:
            self._ensure_unique(session, context.organisation_id, values)
            record = self.model(organisation_id=context.organisation_id, **values)
            if before_save is not None:
                before_save(session, record)
            setattr(record, "search_text", self._search_text(record))
            session.add(record)
            document = track_creation(session, context, record, self.resource.label, self._name(record))
            self._commit(session)
            session.refresh(record)
        emit_change(context, self.resource.collection, document, CREATE)
        return record

    def update(
        self,
        context: AccessContext,
        record_id: str,
        changes: dict[str, Any],
        before_save: Hook | None = None,
    ) -> RecordT:
        with self.session() as session:
            record = self.require(session, context.organisation_id, record_id)
            before = to_document(record)
            self._ensure_unique(session, context.organisation_id, changes, exclude_id=record_id)
            for key, value in changes.items():
                setattr(record, key, value)
            self.check_required(record.model_dump())
            if before_save is not None:
                before_save(session, record)
            setattr(record, "search_text", self._search_text(record))
            setattr(record, "updated_at", now_utc())
            session.add(record)
            document = track_update(session, context, before, record, self.resource.label, self._name(record))
            self._commit(session)
            session.refresh(record)
        emit_change(context, self.resource.collection, document, UPDATE)
        return record

    def delete(self, context: AccessContext, record_id: str, guard: Hook | None = None) -> None:
        with self.session() as session:
            record = self.require(session, context.organisation_id, record_id)
            if guard is not None:
                guard(session, record)
            document = track_deletion(session, context, record, self.resource.label, self._name(record))
            session.delete(record)
            session.commit()
        emit_change(context, self.resource.collection, document, DELETE)

    def fetch(self, context: AccessContext, record_id: str) -> RecordT:
        with self.session() as session:
            record = self.require(session, context.organisation_id, record_id)
        record_read(record)
        return record

    def page(self, context: AccessContext, query: PageQuery, extra_conditions: list[Any] | None = None) -> PageResult:
        with self.session() as session:
            result = paginate(
                session,
                self.model,
                context.organisation_id,
                query,
                allowed_filters=self.resource.filters,
                extra_conditions=extra_conditions,
            )
        record_read(result.items)
        return result

    def all(self, context: AccessContext, extra_conditions: list[Any] | None = None) -> list[RecordT]:
        model: Any = self.model
        with self.session() as session:
            statement = select(model).where(model.organisation_id == context.organisation_id)
            for condition in extra_conditions or []:
                statement = statement.where(condition)
            records = list(session.exec(statement.order_by(col(model.id).desc())).all())
        record_read(records)
        return records


def referenced_by(session: Session, model: Any, column: str, value: str) -> bool:
    return session.exec(select(model.id).where(getattr(model, column) == value).limit(1)).first() is not None
