from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlmodel import Session, SQLModel, select

from schoolms.domain.models import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentUpdate,
    Course,
    CourseCreate,
    CourseManager,
    CourseUpdate,
    Level,
    LevelCreate,
    LevelManager,
    LevelUpdate,
    Programme,
    ProgrammeCreate,
    ProgrammeManager,
    ProgrammeUpdate,
    RecordStatus,
    Staff,
    Subject,
    SubjectCreate,
    SubjectTeacher,
    SubjectUpdate,
    Syllabus,
    SyllabusCreate,
    SyllabusUpdate,
    Topic,
    TopicCreate,
    TopicUpdate,
)
from schoolms.domain.pagination import PageQuery, PageResult
from schoolms.services.access_service import AccessContext
from schoolms.services.records import (
    ConflictError,
    Hook,
    NotFoundError,
    RecordError,
    RecordStore,
    Resource,
    ValidationError,
    referenced_by,
)

__all__ = [
    "ASSIGNMENTS",
    "ConflictError",
    "CurriculumService",
    "NotFoundError",
    "RecordError",
    "ValidationError",
]

PROGRAMMES = Resource(
    model=Programme,
    label="Programme",
    collection="programmes",
    name_field="programme",
    search_fields=("custom_id", "programme", "description", "status"),
    required=("custom_id", "programme", "status"),
    filters=frozenset({"status"}),
)
COURSES = Resource(
    model=Course,
    label="Course",
    collection="courses",
    name_field="course_name",
    search_fields=("custom_id", "course_name", "course_full_title", "status"),
    required=("programme_id", "custom_id", "course_name", "course_full_title", "offering_start_date", "status"),
    filters=frozenset({"programme_id", "status"}),
)
LEVELS = Resource(
    model=Level,
    label="Level",
    collection="levels",
    name_field="level",
    search_fields=("custom_id", "level", "level_full_title", "status"),
    required=("course_id", "custom_id", "level", "level_full_title", "offering_start_date", "status"),
    filters=frozenset({"course_id", "status"}),
)
SUBJECTS = Resource(
    model=Subject,
    label="Subject",
    collection="subjects",
    name_field="subject",
    search_fields=("custom_id", "subject", "subject_full_title", "status"),
    required=("level_id", "custom_id", "subject", "subject_full_title", "offering_start_date", "status"),
    filters=frozenset({"level_id", "course_id", "status"}),
)
SYLLABUSES = Resource(
    model=Syllabus,
    label="Syllabus",
    collection="syllabuses",
    name_field="syllabus",
    search_fields=("custom_id", "syllabus", "description", "status"),
    required=("subject_id", "custom_id", "syllabus", "status"),
    filters=frozenset({"subject_id", "status"}),
)
TOPICS = Resource(
    model=Topic,
    label="Topic",
    collection="topics",
    name_field="topic",
    search_fields=("custom_id", "topic", "description", "status"),
    required=("custom_id", "topic", "status"),
    filters=frozenset({"status"}),
)


@dataclass(frozen=True)
class AssignmentKind:
    key: str
    model: type[SQLModel]
    parent: Resource[Any]
    parent_field: str
    resource: Resource[Any]


def _assignment_resource(model: type[SQLModel], label: str, collection: str, parent_field: str) -> Resource[Any]:
    return Resource(
        model=model,
        label=label,
        collection=collection,
        name_field="staff_full_name",
        search_fields=(parent_field, "staff_id", "staff_full_name", "staff_type", "status"),
        required=(parent_field, "staff_id", "managed_from", "status"),
        filters=frozenset({parent_field, "staff_id", "staff_type", "status"}),
        unique_fields=(),
    )


ASSIGNMENTS: dict[str, AssignmentKind] = {
    "programme-managers": AssignmentKind(
        key="programme-managers",
        model=ProgrammeManager,
        parent=PROGRAMMES,
        parent_field="programme_id",
        resource=_assignment_resource(ProgrammeManager, "Programme Manager", "programme_managers", "programme_id"),
    ),
    "course-managers": AssignmentKind(
        key="course-managers",
        model=CourseManager,
        parent=COURSES,
        parent_field="course_id",
        resource=_assignment_resource(CourseManager, "Course Manager", "course_managers", "course_id"),
    ),
    "level-managers": AssignmentKind(
        key="level-managers",
        model=LevelManager,
        parent=LEVELS,
        parent_field="level_id",
        resource=_assignment_resource(LevelManager, "Level Manager", "level_managers", "level_id"),
    ),
    "subject-teachers": AssignmentKind(
        key="subject-teachers",
        model=SubjectTeacher,
        parent=SUBJECTS,
        parent_field="subject_id",
        resource=_assignment_resource(SubjectTeacher, "Subject Teacher", "subject_teachers", "subject_id"),
    ),
}


def to_assignment_read(kind: AssignmentKind, record: Any) -> AssignmentRead:
    return AssignmentRead(
        id=record.id,
        organisation_id=record.organisation_id,
        parent_id=getattr(record, kind.parent_field),
        staff_id=record.staff_id,
        staff_full_name=record.staff_full_name,
        staff_type=record.staff_type,
        managed_from=record.managed_from,
        managed_until=record.managed_until,
        status=record.status,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class CurriculumService:
    def __init__(self) -> None:
        self.programmes = RecordStore(PROGRAMMES)
        self.courses = RecordStore(COURSES)
        self.levels = RecordStore(LEVELS)
        self.subjects = RecordStore(SUBJECTS)
        self.syllabuses = RecordStore(SYLLABUSES)
        self.topics = RecordStore(TOPICS)
        self.assignment_stores = {key: RecordStore(kind.resource) for key, kind in ASSIGNMENTS.items()}

    def _require_parent(self, store: RecordStore[Any], organisation_id: str, field: str) -> Hook:
        def _check(session: Session, record: Any) -> None:
            parent_id = getattr(record, field)
            if store.get(session, organisation_id, parent_id) is None:
                raise NotFoundError(f"{store.resource.label} not found - it may have been deleted")

        return _check

    def _refuse_if_referenced(self, children: list[tuple[Any, str, str]]) -> Hook:
        def _guard(session: Session, record: Any) -> None:
            for model, column, label in children:
                if referenced_by(session, model, column, record.id):
                    raise ConflictError(f"This record still has {label} linked to it - remove them first")

        return _guard

    # programmes

    def create_programme(self, context: AccessContext, payload: ProgrammeCreate) -> Programme:
        return self.programmes.create(context, payload.model_dump())

    def list_programmes(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.programmes.page(context, query)

    def all_programmes(self, context: AccessContext) -> list[Programme]:
        return self.programmes.all(context)

    def update_programme(self, context: AccessContext, programme_id: str, payload: ProgrammeUpdate) -> Programme:
        return self.programmes.update(context, programme_id, payload.model_dump(exclude_unset=True))

    def delete_programme(self, context: AccessContext, programme_id: str) -> None:
        guard = self._refuse_if_referenced(
            [(Course, "programme_id", "courses"), (ProgrammeManager, "programme_id", "managers")]
        )
        self.programmes.delete(context, programme_id, guard=guard)

    # courses

    def create_course(self, context: AccessContext, payload: CourseCreate) -> Course:
        hook = self._require_parent(self.programmes, context.organisation_id, "programme_id")
        return self.courses.create(context, payload.model_dump(), before_save=hook)

    def list_courses(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.courses.page(context, query)

    def all_courses(self, context: AccessContext) -> list[Course]:
        return self.courses.all(context)

    def update_course(self, context: AccessContext, course_id: str, payload: CourseUpdate) -> Course:
        hook = self._require_parent(self.programmes, context.organisation_id, "programme_id")
        return self.courses.update(context, course_id, payload.model_dump(exclude_unset=True), before_save=hook)

    def delete_course(self, context: AccessContext, course_id: str) -> None:
        guard = self._refuse_if_referenced(
            [(Level, "course_id", "levels"), (Subject, "course_id", "subjects"), (CourseManager, "course_id", "managers")]
        )
        self.courses.delete(context, course_id, guard=guard)

    # levels

    def create_level(self, context: AccessContext, payload: LevelCreate) -> Level:
        hook = self._require_parent(self.courses, context.organisation_id, "course_id")
        return self.levels.create(context, payload.model_dump(), before_save=hook)

    def list_levels(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.levels.page(context, query)

    def all_levels(self, context: AccessContext) -> list[Level]:
        return self.levels.all(context)

    def update_level(self, context: AccessContext, level_id: str, payload: LevelUpdate) -> Level:
        hook = self._require_parent(self.courses, context.organisation_id, "course_id")
        return self.levels.update(context, level_id, payload.model_dump(exclude_unset=True), before_save=hook)

    def delete_level(self, context: AccessContext, level_id: str) -> None:
        guard = self._refuse_if_referenced([(Subject, "level_id", "subjects"), (LevelManager, "level_id", "managers")])
        self.levels.delete(context, level_id, guard=guard)

    # subjects

    def _subject_hook(self, context: AccessContext) -> Hook:
        def _check(session: Session, subject: Subject) -> None:
            level = self.levels.get(session, context.organisation_id, subject.level_id)
            if level is None:
                raise NotFoundError("Level not found - it may have been deleted")
            subject.course_id = level.course_id

        return _check

    def create_subject(self, context: AccessContext, payload: SubjectCreate) -> Subject:
        values = payload.model_dump()
        values["course_id"] = ""
        return self.subjects.create(context, values, before_save=self._subject_hook(context))

    def list_subjects(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.subjects.page(context, query)

    def all_subjects(self, context: AccessContext) -> list[Subject]:
        return self.subjects.all(context)

    def update_subject(self, context: AccessContext, subject_id: str, payload: SubjectUpdate) -> Subject:
        return self.subjects.update(
            context,
            subject_id,
            payload.model_dump(exclude_unset=True),
            before_save=self._subject_hook(context),
        )

    def delete_subject(self, context: AccessContext, subject_id: str) -> None:
        guard = self._refuse_if_referenced(
            [(Syllabus, "subject_id", "syllabuses"), (SubjectTeacher, "subject_id", "teachers")]
        )
        self.subjects.delete(context, subject_id, guard=guard)

    # syllabuses

    def _syllabus_hook(self, context: AccessContext) -> Hook:
        parent_check = self._require_parent(self.subjects, context.organisation_id, "subject_id")

        def _check(session: Session, syllabus: Syllabus) -> None:
            parent_check(session, syllabus)
            for item in syllabus.topics:
                if self.topics.get(session, context.organisation_id, item.get("topic_id", "")) is None:
                    raise NotFoundError(f"Topic not found: {item.get('topic_id')}")

        return _check

    def create_syllabus(self, context: AccessContext, payload: SyllabusCreate) -> Syllabus:
        return self.syllabuses.create(context, payload.model_dump(), before_save=self._syllabus_hook(context))

    def list_syllabuses(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.syllabuses.page(context, query)

    def all_syllabuses(self, context: AccessContext) -> list[Syllabus]:
        return self.syllabuses.all(context)

    def update_syllabus(self, context: AccessContext, syllabus_id: str, payload: SyllabusUpdate) -> Syllabus:
        return self.syllabuses.update(
            context,
            syllabus_id,
            payload.model_dump(exclude_unset=True),
            before_save=self._syllabus_hook(context),
        )

    def delete_syllabus(self, context: AccessContext, syllabus_id: str) -> None:
        self.syllabuses.delete(context, syllabus_id)

    # topics

    def create_topic(self, context: AccessContext, payload: TopicCreate) -> Topic:
        return self.topics.create(context, payload.model_dump())

    def list_topics(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.topics.page(context, query)

    def all_topics(self, context: AccessContext) -> list[Topic]:
        return self.topics.all(context)

    def update_topic(self, context: AccessContext, topic_id: str, payload: TopicUpdate) -> Topic:
        return self.topics.update(context, topic_id, payload.model_dump(exclude_unset=True))

    def delete_topic(self, context: AccessContext, topic_id: str) -> None:
        def _guard(session: Session, topic: Topic) -> None:
            statement = select(Syllabus).where(Syllabus.organisation_id == context.organisation_id)
            for syllabus in session.exec(statement).all():
                if any(item.get("topic_id") == topic.id for item in syllabus.topics):
                    raise ConflictError(f"This topic is used by the syllabus {syllabus.syllabus} - remove it first")

        self.topics.delete(context, topic_id, guard=_guard)

    # managers and subject teachers

    def _kind(self, key: str) -> AssignmentKind:
        kind = ASSIGNMENTS.get(key)
        if kind is None:
            raise NotFoundError(f"Unknown assignment type: {key}")
        return kind

    def _assignment_hook(self, context: AccessContext, kind: AssignmentKind, exclude_id: str | None = None) -> Hook:
        parent_store = RecordStore(kind.parent)
        model: Any = kind.model

        def _check(session: Session, assignment: Any) -> None:
            parent_id = getattr(assignment, kind.parent_field)
            if parent_store.get(session, context.organisation_id, parent_id) is None:
                raise NotFoundError(f"{kind.parent.label} not found - it may have been deleted")
            staff = session.get(Staff, assignment.staff_id)
            if staff is None or staff.organisation_id != context.organisation_id:
                raise NotFoundError("Staff profile not found")
            assignment.staff_full_name = staff.full_name
            if assignment.status != RecordStatus.ACTIVE:
                return
            statement = (
                select(model.id)
                .where(model.organisation_id == context.organisation_id)
                .where(getattr(model, kind.parent_field) == parent_id)
                .where(model.staff_id == assignment.staff_id)
                .where(model.status == RecordStatus.ACTIVE)
            )
            if exclude_id is not None:
                statement = statement.where(model.id != exclude_id)
            if session.exec(statement).first() is not None:
                raise ConflictError(
                    f"{staff.full_name} is already an active {kind.resource.label.lower()} "
                    f"of this {kind.parent.label.lower()}"
                )

        return _check

    def create_assignment(self, context: AccessContext, key: str, payload: AssignmentCreate) -> AssignmentRead:
        kind = self._kind(key)
        values = payload.model_dump()
        values[kind.parent_field] = values.pop("parent_id")
        values["staff_full_name"] = ""
        store = self.assignment_stores[key]
        record = store.create(context, values, before_save=self._assignment_hook(context, kind))
        return to_assignment_read(kind, record)

    def list_assignments(self, context: AccessContext, key: str, query: PageQuery) -> PageResult:
        kind = self._kind(key)
        filters = dict(query.filters)
        if "parent_id" in filters:
            filters[kind.parent_field] = filters.pop("parent_id")
        page = self.assignment_stores[key].page(context, query.model_copy(update={"filters": filters}))
        return page.model_copy(update={"items": [to_assignment_read(kind, item) for item in page.items]})

    def update_assignment(
        self,
        context: AccessContext,
        key: str,
        assignment_id: str,
        payload: AssignmentUpdate,
    ) -> AssignmentRead:
        kind = self._kind(key)
        record = self.assignment_stores[key].update(
            context,
            assignment_id,
            payload.model_dump(exclude_unset=True),
            before_save=self._assignment_hook(context, kind, exclude_id=assignment_id),
        )
        return to_assignment_read(kind, record)

    def delete_assignment(self, context: AccessContext, key: str, assignment_id: str) -> None:
        self._kind(key)
        self.assignment_stores[key].delete(context, assignment_id)
