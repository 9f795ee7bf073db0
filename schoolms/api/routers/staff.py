from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from schoolms.api.deps import Page, require_action, require_any
from schoolms.domain.models import (
    StaffContractCreate,
    StaffContractRead,
    StaffContractUpdate,
    StaffCreate,
    StaffRead,
    StaffUpdate,
)
from schoolms.domain.pagination import InvalidFilterError, PageResult
from schoolms.services.access_service import AccessContext
from schoolms.services.staff_service import ConflictError, NotFoundError, StaffService, ValidationError

router = APIRouter()


def get_staff_service() -> StaffService:
    return StaffService()


Service = Annotated[StaffService, Depends(get_staff_service)]
STAFF_ERRORS = (NotFoundError, ConflictError, ValidationError, InvalidFilterError)


def _handle_staff_error(exc: Exception) -> None:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ValidationError | InvalidFilterError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def _page(result: PageResult, read_model: Any) -> dict[str, Any]:
    payload = result.model_dump(exclude={"items"})
    payload["items"] = [read_model.model_validate(item).model_dump(mode="json") for item in result.items]
    return payload


@router.post("/profiles", response_model=StaffRead, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: StaffCreate,
    context: Annotated[AccessContext, Depends(require_action("Create Staff Profile"))],
    service: Service,
) -> StaffRead:
    try:
        return StaffRead.model_validate(service.create_staff(context, payload))
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.get("/profiles")
def list_staff(
    query: Page,
    context: Annotated[AccessContext, Depends(require_action("View Staff Profiles"))],
    service: Service,
) -> dict[str, Any]:
    try:
        return _page(service.list_staff(context, query), StaffRead)
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.get("/profiles/all", response_model=list[StaffRead])
def all_staff(
    context: Annotated[AccessContext, Depends(require_any("All Staff Profiles"))],
    service: Service,
) -> list[StaffRead]:
    return [StaffRead.model_validate(item) for item in service.all_staff(context)]


@router.get("/profiles/{staff_id}", response_model=StaffRead)
def get_staff(
    staff_id: str,
    context: Annotated[AccessContext, Depends(require_action("View Staff Profiles"))],
    service: Service,
) -> StaffRead:
    try:
        return StaffRead.model_validate(service.get_staff(context, staff_id))
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.patch("/profiles/{staff_id}", response_model=StaffRead)
def update_staff(
    staff_id: str,
    payload: StaffUpdate,
    context: Annotated[AccessContext, Depends(require_action("Edit Staff Profile"))],
    service: Service,
) -> StaffRead:
    try:
        return StaffRead.model_validate(service.update_staff(context, staff_id, payload))
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.delete("/profiles/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staff(
    staff_id: str,
    context: Annotated[AccessContext, Depends(require_action("Delete Staff Profile"))],
    service: Service,
) -> Response:
    try:
        service.delete_staff(context, staff_id)
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/contracts", response_model=StaffContractRead, status_code=status.HTTP_201_CREATED)
def create_contract(
    payload: StaffContractCreate,
    context: Annotated[AccessContext, Depends(require_action("Create Staff Contract"))],
    service: Service,
) -> StaffContractRead:
    try:
        return StaffContractRead.model_validate(service.create_contract(context, payload))
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.get("/contracts")
def list_contracts(
    query: Page,
    context: Annotated[AccessContext, Depends(require_action("View Staff Contracts"))],
    service: Service,
) -> dict[str, Any]:
    try:
        return _page(service.list_contracts(context, query), StaffContractRead)
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.get("/contracts/all", response_model=list[StaffContractRead])
def all_contracts(
    context: Annotated[AccessContext, Depends(require_any("All Staff Contracts"))],
    service: Service,
) -> list[StaffContractRead]:
    return [StaffContractRead.model_validate(item) for item in service.all_contracts(context)]


@router.get("/contracts/{contract_id}", response_model=StaffContractRead)
def get_contract(
    contract_id: str,
    context: Annotated[AccessContext, Depends(require_action("View Staff Contracts"))],
    service: Service,
) -> StaffContractRead:
    try:
        return StaffContractRead.model_validate(service.get_contract(context, contract_id))
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.patch("/contracts/{contract_id}", response_model=StaffContractRead)
def update_contract(
    contract_id: str,
    payload: StaffContractUpdate,
    context: Annotated[AccessContext, Depends(require_action("Edit Staff Contract"))],
    service: Service,
) -> StaffContractRead:
    try:
        return StaffContractRead.model_validate(service.update_contract(context, contract_id, payload))
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
        raise


@router.delete("/contracts/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract(
    contract_id: str,
    context: Annotated[AccessContext, Depends(require_action("Delete Staff Contract"))],
    service: Service,
) -> Response:
    try:
        service.delete_contract(context, contract_id)
    except STAFF_ERRORS as exc:
        _handle_staff_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
