from __future__ import annotations

import os
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from schoolms.api.deps import ACCESS_COOKIE, REFRESH_COOKIE, Context
from schoolms.domain.models import (
    AccessTokenResponse,
    Account,
    AccountRead,
    RefreshRequest,
    SigninRequest,
    SignupRequest,
    TokenResponse,
)
from schoolms.infra.auth import JWT_EXPIRES_MIN, JWT_REFRESH_EXPIRES_DAYS, create_access_token, create_refresh_token
from schoolms.services.account_service import AccountService, AuthError, ConflictError, ValidationError

COOKIE_SECURE = os.getenv("COOKIE_SECURE", "true").lower() == "true"

router = APIRouter()


def get_account_service() -> AccountService:
    return AccountService()


Service = Annotated[AccountService, Depends(get_account_service)]


def _handle_account_error(exc: Exception) -> None:
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, AuthError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    raise exc


def _set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key,
        value,
        max_age=max_age,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="none" if COOKIE_SECURE else "lax",
    )


def _issue_tokens(account: Account, response: Response) -> TokenResponse:
    claims: dict[str, Any] = {
        "account_id": account.id,
        "organisation_id": account.organisation_id,
        "role_id": account.role_id,
    }
    access_token = create_access_token(**claims)
    refresh_token = create_refresh_token(**claims)
    _set_cookie(response, REFRESH_COOKIE, refresh_token, JWT_REFRESH_EXPIRES_DAYS * 24 * 60 * 60)
    _set_cookie(response, ACCESS_COOKIE, access_token, JWT_EXPIRES_MIN * 60)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        account=AccountRead.model_validate(account),
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, response: Response, service: Service) -> TokenResponse:
    try:
        account = service.signup_organisation(payload)
    except (ValidationError, ConflictError, AuthError) as exc:
        _handle_account_error(exc)
        raise
    return _issue_tokens(account, response)


@router.post("/signin", response_model=TokenResponse)
def signin(payload: SigninRequest, response: Response, service: Service) -> TokenResponse:
    try:
        account = service.signin(payload)
    except (ValidationError, ConflictError, AuthError) as exc:
        _handle_account_error(exc)
        raise
    return _issue_tokens(account, response)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh(
    request: Request,
    response: Response,
    service: Service,
    payload: RefreshRequest | None = None,
) -> AccessTokenResponse:
    token = (payload.refresh_token if payload else None) or request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing refresh token")
    try:
        account = service.account_from_refresh_token(token)
    except (ValidationError, ConflictError, AuthError) as exc:
        _handle_account_error(exc)
        raise
    access_token = create_access_token(
        account_id=account.id,
        organisation_id=account.organisation_id,
        role_id=account.role_id,
    )
    _set_cookie(response, ACCESS_COOKIE, access_token, JWT_EXPIRES_MIN * 60)
    return AccessTokenResponse(access_token=access_token)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def signout(request: Request, service: Service, payload: RefreshRequest | None = None) -> Response:
    token = (payload.refresh_token if payload else None) or request.cookies.get(REFRESH_COOKIE)
    if token:
        service.revoke_refresh_token(token)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return response


@router.get("/me")
def me(context: Context) -> dict[str, Any]:
    return {
        "account": AccountRead.model_validate(context.account).model_dump(mode="json"),
        "organisation_id": context.organisation_id,
        "role": {
            "id": context.role.id or None,
            "name": context.role.name or None,
            "absolute_admin": context.absolute_admin,
        },
        "permitted_actions": context.permitted_actions(),
    }
