# Route factories below bind payload models at definition time, so annotations
# must stay evaluated (no postponed annotations in this module).
from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from schoolms.api.deps import Page, require_action, require_any
from schoolms.domain.models import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentUpdate,
    CourseCreate,
    CourseRead,
    CourseUpdate,
    LevelCreate,
    LevelRead,
    LevelUpdate,
    ProgrammeCreate,
    ProgrammeRead,
    ProgrammeUpdate,
    SubjectCreate,
    SubjectRead,
    SubjectUpdate,
    SyllabusCreate,
    SyllabusRead,
    SyllabusUpdate,
    TopicCreate,
    TopicRead,
    TopicUpdate,
)
from schoolms.domain.pagination import InvalidFilterError
from schoolms.services.access_service import AccessContext
from schoolms.services.curriculum_service import (
    ASSIGNMENTS,
    ConflictError,
    CurriculumService,
    NotFoundError,
    ValidationError,
)

router = APIRouter()


def get_curriculum_service() -> CurriculumService:
    return CurriculumService()


Service = Annotated[CurriculumService, Depends(get_curriculum_service)]
CURRICULUM_ERRORS = (NotFoundError, ConflictError, ValidationError, InvalidFilterError)


def _handle_curriculum_error(exc: Exception) -> None:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ValidationError | InvalidFilterError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def _register_entity(
    path: str,
    singular: str,
    plural: str,
    create_model: type[BaseModel],
    update_model: type[BaseModel],
    read_model: type[BaseModel],
    operations: dict[str, Callable[..., Any]],
) -> None:
    """Create, paginated list, "all" lookup, update and delete routes for one entity."""
    create_op = operations["create"]
    list_op = operations["list"]
    all_op = operations["all"]
    update_op = operations["update"]
    delete_op = operations["delete"]

    def create(
        payload: create_model,  # type: ignore[valid-type]
        context: Annotated[AccessContext, Depends(require_action(f"Create {singular}"))],
        service: Service,
    ) -> Any:
        try:
            return read_model.model_validate(create_op(service, context, payload))
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
            raise

    def list_page(
        query: Page,
        context: Annotated[AccessContext, Depends(require_action(f"View {plural}"))],
        service: Service,
    ) -> dict[str, Any]:
        try:
            result = list_op(service, context, query)
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
            raise
        payload = result.model_dump(exclude={"items"})
        payload["items"] = [read_model.model_validate(item).model_dump(mode="json") for item in result.items]
        return payload

    def list_all(
        context: Annotated[AccessContext, Depends(require_any(f"All {plural}"))],
        service: Service,
    ) -> list[Any]:
        return [read_model.model_validate(item) for item in all_op(service, context)]

    def update(
        record_id: str,
        payload: update_model,  # type: ignore[valid-type]
        context: Annotated[AccessContext, Depends(require_action(f"Edit {singular}"))],
        service: Service,
    ) -> Any:
        try:
            return read_model.model_validate(update_op(service, context, record_id, payload))
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
            raise

    def delete(
        record_id: str,
        context: Annotated[AccessContext, Depends(require_action(f"Delete {singular}"))],
        service: Service,
    ) -> Response:
        try:
            delete_op(service, context, record_id)
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    name = path.strip("/").replace("-", "_")
    router.add_api_route(
        path,
        create,
        methods=["POST"],
        response_model=read_model,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{name}",
    )
    router.add_api_route(path, list_page, methods=["GET"], name=f"list_{name}")
    router.add_api_route(f"{path}/all", list_all, methods=["GET"], response_model=list[read_model], name=f"all_{name}")
    router.add_api_route(
        f"{path}/{{record_id}}",
        update,
        methods=["PATCH"],
        response_model=read_model,
        name=f"update_{name}",
    )
    router.add_api_route(
        f"{path}/{{record_id}}",
        delete,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
        name=f"delete_{name}",
    )


def _register_assignments(key: str) -> None:
    label = ASSIGNMENTS[key].resource.label

    def create(
        payload: AssignmentCreate,
        context: Annotated[AccessContext, Depends(require_action(f"Create {label}"))],
        service: Service,
    ) -> AssignmentRead:
        try:
            return service.create_assignment(context, key, payload)
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
            raise

    def list_page(
        query: Page,
        context: Annotated[AccessContext, Depends(require_action(f"View {label}s"))],
        service: Service,
    ) -> dict[str, Any]:
        try:
            result = service.list_assignments(context, key, query)
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
            raise
        payload = result.model_dump(exclude={"items"})
        payload["items"] = [item.model_dump(mode="json") for item in result.items]
        return payload

    def update(
        assignment_id: str,
        payload: AssignmentUpdate,
        context: Annotated[AccessContext, Depends(require_action(f"Edit {label}"))],
        service: Service,
    ) -> AssignmentRead:
        try:
            return service.update_assignment(context, key, assignment_id, payload)
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
            raise

    def delete(
        assignment_id: str,
        context: Annotated[AccessContext, Depends(require_action(f"Delete {label}"))],
        service: Service,
    ) -> Response:
        try:
            service.delete_assignment(context, key, assignment_id)
        except CURRICULUM_ERRORS as exc:
            _handle_curriculum_error(exc)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    name = key.replace("-", "_")
    path = f"/{key}"
    router.add_api_route(
        path,
        create,
        methods=["POST"],
        response_model=AssignmentRead,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{name}",
    )
    router.add_api_route(path, list_page, methods=["GET"], name=f"list_{name}")
    router.add_api_route(
        f"{path}/{{assignment_id}}",
        update,
        methods=["PATCH"],
        response_model=AssignmentRead,
        name=f"update_{name}",
    )
    router.add_api_route(
        f"{path}/{{assignment_id}}",
        delete,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
        name=f"delete_{name}",
    )


_register_entity(
    "/programmes",
    "Programme",
    "Programmes",
    ProgrammeCreate,
    ProgrammeUpdate,
    ProgrammeRead,
    {
        "create": CurriculumService.create_programme,
        "list": CurriculumService.list_programmes,
        "all": CurriculumService.all_programmes,
        "update": CurriculumService.update_programme,
        "delete": CurriculumService.delete_programme,
    },
)
_register_entity(
    "/courses",
    "Course",
    "Courses",
    CourseCreate,
    CourseUpdate,
    CourseRead,
    {
        "create": CurriculumService.create_course,
        "list": CurriculumService.list_courses,
        "all": CurriculumService.all_courses,
        "update": CurriculumService.update_course,
        "delete": CurriculumService.delete_course,
    },
)
_register_entity(
    "/levels",
    "Level",
    "Levels",
    LevelCreate,
    LevelUpdate,
    LevelRead,
    {
        "create": CurriculumService.create_level,
        "list": CurriculumService.list_levels,
        "all": CurriculumService.all_levels,
        "update": CurriculumService.update_level,
        "delete": CurriculumService.delete_level,
    },
)
_register_entity(
    "/subjects",
    "Subject",
    "Subjects",
    SubjectCreate,
    SubjectUpdate,
    SubjectRead,
    {
        "create": CurriculumService.create_subject,
        "list": CurriculumService.list_subjects,
        "all": CurriculumService.all_subjects,
        "update": CurriculumService.update_subject,
        "delete": CurriculumService.delete_subject,
    },
)
_register_entity(
    "/syllabuses",
    "Syllabus",
    "Syllabuses",
    SyllabusCreate,
    SyllabusUpdate,
    SyllabusRead,
    {
        "create": CurriculumService.create_syllabus,
        "list": CurriculumService.list_syllabuses,
        "all": CurriculumService.all_syllabuses,
        "update": CurriculumService.update_syllabus,
        "delete": CurriculumService.delete_syllabus,
    },
)
_register_entity(
    "/topics",
    "Topic",
    "Topics",
    TopicCreate,
    TopicUpdate,
    TopicRead,
    {
        "create": CurriculumService.create_topic,
        "list": CurriculumService.list_topics,
        "all": CurriculumService.all_topics,
        "update": CurriculumService.update_topic,
        "delete": CurriculumService.delete_topic,
    },
)
for _key in ASSIGNMENTS:
    _register_assignments(_key)
