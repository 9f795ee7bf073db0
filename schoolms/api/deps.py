from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from schoolms.domain.pagination import PageQuery
from schoolms.infra.auth import decode_access_token
from schoolms.infra.tenant import set_request_context
from schoolms.infra.usage import bill_to
from schoolms.services.access_service import (
    AccessContext,
    AccessService,
    AuthError,
    ForbiddenError,
    InactiveError,
)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/accounts/signin", auto_error=False)


def get_access_service() -> AccessService:
    return AccessService()


def _handle_access_error(exc: Exception) -> None:
    if isinstance(exc, AuthError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    if isinstance(exc, InactiveError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ForbiddenError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    raise exc


async def get_current_claims(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> dict[str, Any]:
    raw_token = token or request.cookies.get(ACCESS_COOKIE)
    if not raw_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        claims = decode_access_token(raw_token)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc
    request.state.claims = claims
    set_request_context(claims.get("organisation_id"), claims.get("sub"))
    if claims.get("organisation_id"):
        bill_to(str(claims["organisation_id"]))
    return claims


def get_access_context(
    claims: Annotated[dict[str, Any], Depends(get_current_claims)],
    access: Annotated[AccessService, Depends(get_access_service)],
) -> AccessContext:
    try:
        return access.resolve_access(str(claims.get("sub")), claims.get("organisation_id"))
    except (AuthError, InactiveError) as exc:
        _handle_access_error(exc)
        raise


Context = Annotated[AccessContext, Depends(get_access_context)]


def require_action(action: str) -> Callable[..., AccessContext]:
    def _checker(
        context: Context,
        access: Annotated[AccessService, Depends(get_access_service)],
    ) -> AccessContext:
        try:
            access.authorize(context, action)
        except ForbiddenError as exc:
            _handle_access_error(exc)
        return context

    return _checker


def require_any(route_key: str) -> Callable[..., AccessContext]:
    def _checker(
        context: Context,
        access: Annotated[AccessService, Depends(get_access_service)],
    ) -> AccessContext:
        try:
            access.authorize_any(context, route_key)
        except ForbiddenError as exc:
            _handle_access_error(exc)
        return context

    return _checker


def require_absolute_admin(action: str) -> Callable[..., AccessContext]:
    def _checker(
        context: Context,
        access: Annotated[AccessService, Depends(get_access_service)],
    ) -> AccessContext:
        try:
            access.require_absolute_admin(context, action)
        except ForbiddenError as exc:
            _handle_access_error(exc)
        return context

    return _checker


def get_page_query(request: Request) -> PageQuery:
    return PageQuery.from_params(dict(request.query_params))


Page = Annotated[PageQuery, Depends(get_page_query)]
