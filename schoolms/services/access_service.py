from __future__ import annotations

from dataclasses import dataclass

from sqlmodel import Session

from schoolms.domain.billing import get_object_size
from schoolms.domain.models import Account, AccountStatus, AccountType, Organisation, Role
from schoolms.domain.permissions import check_access, check_accesses, needed_accesses, permitted_actions
from schoolms.infra.db import get_engine
from schoolms.infra.usage import record_usage

ORGANISATION_INACTIVE_MESSAGE = "Your organisation is not active - Please contact your admin if you need help"
ACCOUNT_INACTIVE_MESSAGE = "Your account is not active - Please contact your admin if you need help"


class AccessError(Exception):
    pass


class AuthError(AccessError):
    pass


class ForbiddenError(AccessError):
    pass


class InactiveError(AccessError):
    pass


def unauthorised_message(action: str) -> str:
    return f"Unauthorised Action: You do not have access to {action} - Please contact your admin"


@dataclass(frozen=True)
class AccessContext:
    account: Account
    organisation: Organisation
    role: Role

    @property
    def account_id(self) -> str:
        return self.account.id

    @property
    def organisation_id(self) -> str:
        return self.organisation.id

    @property
    def absolute_admin(self) -> bool:
        return self.role.absolute_admin

    @property
    def is_default_admin(self) -> bool:
        return self.account.account_type == AccountType.ORGANIZATION

    def permitted_actions(self) -> list[str]:
        return permitted_actions(self.role.tab_access, self.account.unique_tab_access)


class AccessService:
    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def resolve_access(self, account_id: str, organisation_id: str | None = None) -> AccessContext:
        with self._session() as session:
            account = session.get(Account, account_id)
            if account is None:
                raise AuthError("Your account no longer exists")
            if organisation_id is not None and account.organisation_id != organisation_id:
                raise AuthError("Your account no longer exists")
            organisation = session.get(Organisation, account.organisation_id)
            if organisation is None:
                raise AuthError("Your organisation no longer exists")
            if account.role_id is None:
                # no role: only the account's own tabs apply
                role = Role(id="", organisation_id=organisation.id, name="", tab_access=[])
            else:
                role = session.get(Role, account.role_id)
                if role is None or role.organisation_id != organisation.id:
                    raise AuthError("Your assigned role no longer exists")

        record_usage(
            database_operation=3,
            database_data_transfer=get_object_size(
                [
                    account.model_dump(mode="json"),
                    organisation.model_dump(mode="json"),
                    role.model_dump(mode="json"),
                ]
            ),
        )

        if organisation.status != AccountStatus.ACTIVE:
            raise InactiveError(ORGANISATION_INACTIVE_MESSAGE)
        if account.status != AccountStatus.ACTIVE:
            raise InactiveError(ACCOUNT_INACTIVE_MESSAGE)
        return AccessContext(account=account, organisation=organisation, role=role)

    def authorize(self, context: AccessContext, action: str) -> None:
        if context.absolute_admin:
            return
        if not check_access(context.role.tab_access, context.account.unique_tab_access, action):
            raise ForbiddenError(unauthorised_message(action))

    def authorize_any(self, context: AccessContext, route_key: str) -> None:
        if context.absolute_admin:
            return
        actions = needed_accesses(route_key)
        if not check_accesses(context.role.tab_access, context.account.unique_tab_access, actions):
            raise ForbiddenError(unauthorised_message(route_key))

    def require_absolute_admin(self, context: AccessContext, action: str) -> None:
        if not context.absolute_admin:
            raise ForbiddenError(unauthorised_message(action))
