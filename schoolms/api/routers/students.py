from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from schoolms.api.deps import Page, require_action, require_any
from schoolms.domain.models import StudentCreate, StudentRead, StudentUpdate
from schoolms.domain.pagination import InvalidFilterError
from schoolms.services.access_service import AccessContext
from schoolms.services.student_service import ConflictError, NotFoundError, StudentService, ValidationError

router = APIRouter()


def get_student_service() -> StudentService:
    return StudentService()


Service = Annotated[StudentService, Depends(get_student_service)]
STUDENT_ERRORS = (NotFoundError, ConflictError, ValidationError, InvalidFilterError)


def _handle_student_error(exc: Exception) -> None:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ValidationError | InvalidFilterError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


@router.post("/profiles", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    context: Annotated[AccessContext, Depends(require_action("Create Student Profile"))],
    service: Service,
) -> StudentRead:
    try:
        return StudentRead.model_validate(service.create_student(context, payload))
    except STUDENT_ERRORS as exc:
        _handle_student_error(exc)
        raise


@router.get("/profiles")
def list_students(
    query: Page,
    context: Annotated[AccessContext, Depends(require_action("View Student Profiles"))],
    service: Service,
) -> dict[str, Any]:
    try:
        result = service.list_students(context, query)
    except STUDENT_ERRORS as exc:
        _handle_student_error(exc)
        raise
    payload = result.model_dump(exclude={"items"})
    payload["items"] = [StudentRead.model_validate(item).model_dump(mode="json") for item in result.items]
    return payload


@router.get("/profiles/all", response_model=list[StudentRead])
def all_students(
    context: Annotated[AccessContext, Depends(require_any("All Student Profiles"))],
    service: Service,
) -> list[StudentRead]:
    return [StudentRead.model_validate(item) for item in service.all_students(context)]


@router.get("/profiles/{student_id}", response_model=StudentRead)
def get_student(
    student_id: str,
    context: Annotated[AccessContext, Depends(require_action("View Student Profiles"))],
    service: Service,
) -> StudentRead:
    try:
        return StudentRead.model_validate(service.get_student(context, student_id))
    except STUDENT_ERRORS as exc:
        _handle_student_error(exc)
        raise


@router.patch("/profiles/{student_id}", response_model=StudentRead)
def update_student(
    student_id: str,
    payload: StudentUpdate,
    context: Annotated[AccessContext, Depends(require_action("Edit Student Profile"))],
    service: Service,
) -> StudentRead:
    try:
        return StudentRead.model_validate(service.update_student(context, student_id, payload))
    except STUDENT_ERRORS as exc:
        _handle_student_error(exc)
        raise


@router.delete("/profiles/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: str,
    context: Annotated[AccessContext, Depends(require_action("Delete Student Profile"))],
    service: Service,
) -> Response:
    try:
        service.delete_student(context, student_id)
    except STUDENT_ERRORS as exc:
        _handle_student_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
