from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from schoolms.api.deps import Page, require_absolute_admin, require_action, require_any
from schoolms.domain.models import (
    AccountRead,
    ActivityLogRead,
    BillingRead,
    OrganisationRead,
    OrganisationSettingsUpdate,
    RoleCreate,
    RoleRead,
    RoleUpdate,
    StaffRead,
    UserCreate,
    UserUpdate,
)
from schoolms.domain.pagination import InvalidFilterError, PageResult
from schoolms.services.access_service import AccessContext
from schoolms.services.admin_service import (
    AdminService,
    ConflictError,
    DisallowedError,
    NotFoundError,
    ValidationError,
)
from schoolms.services.billing_service import BillingService
from schoolms.services.billing_service import NotFoundError as BillNotFoundError

router = APIRouter()


def get_admin_service() -> AdminService:
    return AdminService()


def get_billing_service() -> BillingService:
    return BillingService()


Service = Annotated[AdminService, Depends(get_admin_service)]
Billing = Annotated[BillingService, Depends(get_billing_service)]


def _handle_admin_error(exc: Exception) -> None:
    if isinstance(exc, NotFoundError | BillNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ValidationError | InvalidFilterError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, DisallowedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    raise exc


def _page(result: PageResult, read_model: Any) -> dict[str, Any]:
    payload = result.model_dump(exclude={"items"})
    payload["items"] = [read_model.model_validate(item).model_dump(mode="json") for item in result.items]
    return payload


ADMIN_ERRORS = (NotFoundError, ConflictError, ValidationError, DisallowedError, InvalidFilterError, BillNotFoundError)


# roles


@router.get("/roles", response_model=list[RoleRead])
def list_roles(
    context: Annotated[AccessContext, Depends(require_action("View Roles"))],
    service: Service,
) -> list[RoleRead]:
    return [RoleRead.model_validate(item) for item in service.list_roles(context)]


@router.post("/roles", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
def create_role(
    payload: RoleCreate,
    context: Annotated[AccessContext, Depends(require_action("Create Role"))],
    service: Service,
) -> RoleRead:
    try:
        return RoleRead.model_validate(service.create_role(context, payload))
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.patch("/roles/{role_id}", response_model=RoleRead)
def update_role(
    role_id: str,
    payload: RoleUpdate,
    context: Annotated[AccessContext, Depends(require_action("Edit Role"))],
    service: Service,
) -> RoleRead:
    try:
        return RoleRead.model_validate(service.update_role(context, role_id, payload))
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(
    role_id: str,
    context: Annotated[AccessContext, Depends(require_action("Delete Role"))],
    service: Service,
) -> Response:
    try:
        service.delete_role(context, role_id)
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# users


@router.get("/users")
def list_users(
    query: Page,
    context: Annotated[AccessContext, Depends(require_action("View Users"))],
    service: Service,
) -> dict[str, Any]:
    try:
        return _page(service.list_users(context, query), AccountRead)
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.get("/users/staff", response_model=list[StaffRead])
def list_user_staff(
    context: Annotated[AccessContext, Depends(require_any("All Staff Profiles"))],
    service: Service,
) -> list[StaffRead]:
    return [StaffRead.model_validate(item) for item in service.list_user_staff(context)]


@router.post("/users", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    context: Annotated[AccessContext, Depends(require_action("Create User"))],
    service: Service,
) -> AccountRead:
    try:
        return AccountRead.model_validate(service.create_user(context, payload))
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.put("/users/{account_id}", response_model=AccountRead)
def update_user(
    account_id: str,
    payload: UserUpdate,
    context: Annotated[AccessContext, Depends(require_action("Edit User"))],
    service: Service,
) -> AccountRead:
    try:
        return AccountRead.model_validate(service.update_user(context, account_id, payload))
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.delete("/users/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    account_id: str,
    context: Annotated[AccessContext, Depends(require_action("Delete User"))],
    service: Service,
) -> Response:
    try:
        service.delete_user(context, account_id)
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# organisation settings


@router.get("/organisation", response_model=OrganisationRead)
def get_organisation(
    context: Annotated[AccessContext, Depends(require_absolute_admin("View Settings"))],
    service: Service,
) -> OrganisationRead:
    return OrganisationRead.model_validate(service.get_organisation(context))


@router.put("/organisation/settings", response_model=OrganisationRead)
def update_settings(
    payload: OrganisationSettingsUpdate,
    context: Annotated[AccessContext, Depends(require_absolute_admin("Update Settings"))],
    service: Service,
) -> OrganisationRead:
    try:
        return OrganisationRead.model_validate(service.update_settings(context, payload))
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


# activity logs


@router.get("/activity-logs")
def list_activity_logs(
    query: Page,
    context: Annotated[AccessContext, Depends(require_action("View Activity Logs"))],
    service: Service,
) -> dict[str, Any]:
    try:
        return _page(service.list_activity_logs(context, query), ActivityLogRead)
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.get("/activity-logs/latest", response_model=ActivityLogRead | None)
def latest_activity_log(
    context: Annotated[AccessContext, Depends(require_action("View Activity Logs"))],
    service: Service,
) -> ActivityLogRead | None:
    log = service.latest_activity_log(context)
    return ActivityLogRead.model_validate(log) if log is not None else None


# billing


@router.get("/billings")
def list_billings(
    query: Page,
    context: Annotated[AccessContext, Depends(require_action("View Billings"))],
    billing: Billing,
) -> dict[str, Any]:
    try:
        return _page(billing.list_billings(context.organisation_id, query), BillingRead)
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise


@router.get("/billings/current", response_model=BillingRead)
def current_billing(
    context: Annotated[AccessContext, Depends(require_action("View Billings"))],
    billing: Billing,
) -> BillingRead:
    try:
        return BillingRead.model_validate(billing.get_current_bill(context.organisation_id))
    except ADMIN_ERRORS as exc:
        _handle_admin_error(exc)
        raise
