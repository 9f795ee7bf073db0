from __future__ import annotations

from schoolms.domain.models import Student, StudentCreate, StudentUpdate
from schoolms.domain.pagination import PageQuery, PageResult
from schoolms.services.access_service import AccessContext
from schoolms.services.records import (
    ConflictError,
    NotFoundError,
    RecordError,
    RecordStore,
    Resource,
    ValidationError,
)

__all__ = ["ConflictError", "NotFoundError", "RecordError", "StudentService", "ValidationError"]

STUDENT_PROFILES = Resource(
    model=Student,
    label="Student Profile",
    collection="students",
    name_field="full_name",
    search_fields=("custom_id", "full_name", "email", "phone", "gender", "nationality"),
    required=(
        "custom_id",
        "full_name",
        "date_of_birth",
        "gender",
        "phone",
        "email",
        "address",
        "start_date",
        "nationality",
        "next_of_kin_name",
        "next_of_kin_relationship",
        "next_of_kin_phone",
        "next_of_kin_email",
    ),
    filters=frozenset({"gender", "nationality"}),
    unique_fields=("custom_id", "email"),
)


class StudentService:
    def __init__(self) -> None:
        self.profiles = RecordStore(STUDENT_PROFILES)

    def create_student(self, context: AccessContext, payload: StudentCreate) -> Student:
        return self.profiles.create(context, payload.model_dump())

    def list_students(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.profiles.page(context, query)

    def all_students(self, context: AccessContext) -> list[Student]:
        return self.profiles.all(context)

    def get_student(self, context: AccessContext, student_id: str) -> Student:
        return self.profiles.fetch(context, student_id)

    def update_student(self, context: AccessContext, student_id: str, payload: StudentUpdate) -> Student:
        return self.profiles.update(context, student_id, payload.model_dump(exclude_unset=True))

    def delete_student(self, context: AccessContext, student_id: str) -> None:
        self.profiles.delete(context, student_id)
