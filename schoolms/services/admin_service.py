from __future__ import annotations

import copy

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from schoolms.domain.changes import generate_search_text, record_diff, to_document
from schoolms.domain.models import (
    Account,
    AccountStatus,
    AccountType,
    ActivityLog,
    ContractStatus,
    Organisation,
    OrganisationSettingsUpdate,
    Role,
    RoleCreate,
    RoleUpdate,
    Staff,
    StaffContract,
    UserCreate,
    UserUpdate,
    now_utc,
)
from schoolms.domain.pagination import PageQuery, PageResult, date_range_conditions, paginate
from schoolms.domain.permissions import normalize_tab_access
from schoolms.infra.audit import write_activity_log
from schoolms.infra.auth import hash_password
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

UNCHANGED_PASSWORD = "unchanged"
USER_FILTERS = frozenset({"status", "role_id", "staff_id"})
ACTIVITY_LOG_FILTERS = frozenset({"account_id", "record_model", "log_action", "record_id"})


class AdminError(Exception):
    pass


class NotFoundError(AdminError):
    pass


class ConflictError(AdminError):
    pass


class ValidationError(AdminError):
    pass


class DisallowedError(AdminError):
    pass


class AdminService:
    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _get_scoped_role(self, session: Session, organisation_id: str, role_id: str) -> Role | None:
        statement = select(Role).where(Role.organisation_id == organisation_id).where(Role.id == role_id)
        return session.exec(statement).first()

    def _get_scoped_user(self, session: Session, organisation_id: str, account_id: str) -> Account | None:
        statement = (
            select(Account)
            .where(Account.organisation_id == organisation_id)
            .where(Account.id == account_id)
        )
        return session.exec(statement).first()

    def _email_taken(self, session: Session, organisation_id: str, email: str, exclude_id: str | None = None) -> bool:
        statement = select(Account.id).where(Account.organisation_id == organisation_id).where(Account.email == email)
        if exclude_id is not None:
            statement = statement.where(Account.id != exclude_id)
        return session.exec(statement).first() is not None

    def _require_active_contract(self, session: Session, organisation_id: str, staff_id: str) -> StaffContract:
        statement = (
            select(StaffContract)
            .where(StaffContract.organisation_id == organisation_id)
            .where(StaffContract.staff_id == staff_id)
            .where(StaffContract.status == ContractStatus.ACTIVE)
        )
        contract = session.exec(statement).first()
        if contract is None:
            raise ConflictError(
                "This staff ID does not have an active contract. "
                "Ensure they have up to date active contract - or create one for them"
            )
        return contract

    # roles

    def list_roles(self, context: AccessContext) -> list[Role]:
        with self._session() as session:
            statement = select(Role).where(Role.organisation_id == context.organisation_id)
            if not context.absolute_admin:
                statement = statement.where(col(Role.absolute_admin).is_(False))
                if context.account.role_id is not None:
                    statement = statement.where(Role.id != context.account.role_id)
            roles = list(session.exec(statement.order_by(col(Role.id).desc())).all())
        record_read(roles)
        return roles

    def create_role(self, context: AccessContext, payload: RoleCreate) -> Role:
        if not payload.name or not payload.name.strip():
            raise ValidationError("Please provide the role name")
        with self._session() as session:
            role = Role(
                organisation_id=context.organisation_id,
                created_by=context.account_id,
                name=payload.name.strip(),
                description=payload.description,
                absolute_admin=False,
                tab_access=normalize_tab_access(payload.tab_access),
            )
            session.add(role)
            document = track_creation(session, context, role, "Role", role.name)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("A role with this name already exists") from exc
            session.refresh(role)
        emit_change(context, "roles", document, CREATE)
        return role

    def update_role(self, context: AccessContext, role_id: str, payload: RoleUpdate) -> Role:
        with self._session() as session:
            role = self._get_scoped_role(session, context.organisation_id, role_id)
            if role is None:
                raise NotFoundError("An error occured whilst getting old role data - it may have been deleted")
            if role.absolute_admin:
                raise DisallowedError("Disallowed Action: The default Absolute Admin role cannot be edited")
            before = to_document(role)
            if payload.name is not None:
                if not payload.name.strip():
                    raise ValidationError("Please provide the role name")
                role.name = payload.name.strip()
            if payload.description is not None:
                role.description = payload.description
            if payload.tab_access is not None:
                role.tab_access = normalize_tab_access(payload.tab_access)
            role.updated_at = now_utc()
            session.add(role)
            document = track_update(session, context, before, role, "Role", role.name)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("A role with this name already exists") from exc
            session.refresh(role)
        emit_change(context, "roles", document, UPDATE)
        return role

    def delete_role(self, context: AccessContext, role_id: str) -> None:
        with self._session() as session:
            role = self._get_scoped_role(session, context.organisation_id, role_id)
            if role is None:
                raise NotFoundError("An error occured whilst getting old role data - it may have been deleted")
            if role.absolute_admin:
                raise DisallowedError(
                    "Disallowd Action: This role cannot be deleted as it is the default Absolute Admin role"
                )
            in_use = session.exec(select(Account.id).where(Account.role_id == role.id)).first()
            if in_use is not None:
                raise ConflictError("This role is assigned to users - reassign them before deleting it")
            document = track_deletion(session, context, role, "Role", role.name)
            session.delete(role)
            session.commit()
        emit_change(context, "roles", document, DELETE)

    # users

    def list_users(self, context: AccessContext, query: PageQuery) -> PageResult:
        conditions = [Account.account_type == AccountType.USER]
        if not context.absolute_admin:
            conditions.append(Account.id != context.account_id)
        with self._session() as session:
            page = paginate(
                session,
                Account,
                context.organisation_id,
                query,
                allowed_filters=USER_FILTERS,
                extra_conditions=conditions,
            )
        record_read(page.items)
        return page

    def create_user(self, context: AccessContext, payload: UserCreate) -> Account:
        if not payload.staff_id or not payload.name or not payload.email or not payload.password:
            raise ValidationError("Please fill all required fields")
        email = payload.email.strip().lower()
        with self._session() as session:
            if self._email_taken(session, context.organisation_id, email):
                raise ConflictError(
                    "Another user within the organisation already uses this email - they might already have an account"
                )
            self._require_active_contract(session, context.organisation_id, payload.staff_id)
            if payload.role_id and self._get_scoped_role(session, context.organisation_id, payload.role_id) is None:
                raise NotFoundError("The selected role no longer exists")
            user = Account(
                organisation_id=context.organisation_id,
                account_type=AccountType.USER,
                staff_id=payload.staff_id,
                role_id=payload.role_id or None,
                name=payload.name.strip(),
                email=email,
                password_hash=hash_password(payload.password),
                status=payload.status,
                unique_tab_access=normalize_tab_access(payload.unique_tab_access),
                search_text=generate_search_text([payload.staff_id, email, payload.name, payload.status]),
            )
            session.add(user)
            document = track_creation(session, context, user, "User", user.name)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("This email is already in use within the same organisation") from exc
            session.refresh(user)
        emit_change(context, "accounts", document, CREATE)
        return user

    def update_user(self, context: AccessContext, account_id: str, payload: UserUpdate) -> Account:
        if not payload.name or not payload.email or not payload.password:
            raise ValidationError("Please fill all required fields")
        email = payload.email.strip().lower()
        with self._session() as session:
            user = self._get_scoped_user(session, context.organisation_id, account_id)
            if user is None:
                raise NotFoundError("An error occured whilst getting old user data - Please ensure the user still exists")
            before = to_document(user)
            is_default_admin = user.account_type == AccountType.ORGANIZATION
            if not is_default_admin and not (payload.staff_id or user.staff_id):
                raise ValidationError("Please provide staff ID")
            if is_default_admin and payload.status != AccountStatus.ACTIVE:
                raise DisallowedError("Disallowed: Default Absolute Admin status cannot be changed - Locked")
            if is_default_admin and payload.role_id != context.organisation.default_role_id:
                raise DisallowedError("Disallowed: Another role cannot be assigned to the Default Absolute Admin")
            if self._email_taken(session, context.organisation_id, email, exclude_id=user.id):
                raise ConflictError(
                    "This email is already in use within the same organisation - they might already have an account"
                )
            if payload.staff_id and payload.staff_id != user.staff_id:
                self._require_active_contract(session, context.organisation_id, payload.staff_id)
                user.staff_id = payload.staff_id
            if not is_default_admin and payload.role_id != user.role_id:
                if payload.role_id and self._get_scoped_role(session, context.organisation_id, payload.role_id) is None:
                    raise NotFoundError("The selected role no longer exists")
                user.role_id = payload.role_id or None

            user.name = payload.name.strip()
            user.email = email
            user.status = payload.status
            if payload.password != UNCHANGED_PASSWORD:
                user.password_hash = hash_password(payload.password)
            if payload.unique_tab_access is not None:
                user.unique_tab_access = normalize_tab_access(payload.unique_tab_access)
            user.search_text = generate_search_text([user.staff_id, user.email, user.name, user.status])
            user.updated_at = now_utc()
            session.add(user)
            document = track_update(session, context, before, user, "User", user.name)
            session.commit()
            session.refresh(user)
        emit_change(context, "accounts", document, UPDATE)
        return user

    def delete_user(self, context: AccessContext, account_id: str) -> None:
        with self._session() as session:
            user = self._get_scoped_user(session, context.organisation_id, account_id)
            if user is None:
                raise NotFoundError("An error occured whilst getting old user data - Please ensure the user still exists")
            if user.account_type == AccountType.ORGANIZATION:
                raise DisallowedError(
                    "Disallowd Action: This account cannot be deleted as it is the default "
                    "Absolute Admin/organisation account"
                )
            document = track_deletion(session, context, user, "User", user.name)
            session.delete(user)
            session.commit()
        emit_change(context, "accounts", document, DELETE)

    def list_user_staff(self, context: AccessContext) -> list[Staff]:
        """Staff profiles holding an Active contract, the candidates for new users."""
        with self._session() as session:
            statement = (
                select(Staff)
                .where(Staff.organisation_id == context.organisation_id)
                .where(
                    col(Staff.id).in_(
                        select(StaffContract.staff_id)
                        .where(StaffContract.organisation_id == context.organisation_id)
                        .where(StaffContract.status == ContractStatus.ACTIVE)
                    )
                )
                .order_by(col(Staff.id).desc())
            )
            staff = list(session.exec(statement).all())
        record_read(staff, operations=2)
        return staff

    # organisation settings

    def get_organisation(self, context: AccessContext) -> Organisation:
        return context.organisation

    def update_settings(self, context: AccessContext, payload: OrganisationSettingsUpdate) -> Organisation:
        if not payload.settings:
            raise ValidationError("No settings provided - Please try again")
        with self._session() as session:
            organisation = session.get(Organisation, context.organisation_id)
            if organisation is None:
                raise NotFoundError("Organisation not found")
            before = to_document(organisation)
            settings = copy.deepcopy(organisation.settings or {})
            settings.update(payload.settings)
            organisation.settings = settings
            organisation.updated_at = now_utc()
            session.add(organisation)
            after = to_document(organisation)
            write_activity_log(
                session,
                organisation=organisation,
                account_id=context.account_id,
                log_action="Organisation Settings Update",
                record_model="Organisation",
                record_id=organisation.id,
                record_name=organisation.name,
                record_change=record_diff(before, after),
                always=True,
            )
            session.commit()
            session.refresh(organisation)
        record_read(organisation, operations=2)
        emit_change(context, "organisations", after, UPDATE)
        return organisation

    # activity logs

    def list_activity_logs(self, context: AccessContext, query: PageQuery) -> PageResult:
        with self._session() as session:
            page = paginate(
                session,
                ActivityLog,
                context.organisation_id,
                query,
                allowed_filters=ACTIVITY_LOG_FILTERS,
                extra_conditions=date_range_conditions(ActivityLog, query.filters, column="log_date"),
            )
        record_read(page.items)
        return page

    def latest_activity_log(self, context: AccessContext) -> ActivityLog | None:
        with self._session() as session:
            statement = (
                select(ActivityLog)
                .where(ActivityLog.organisation_id == context.organisation_id)
                .order_by(col(ActivityLog.id).desc())
                .limit(1)
            )
            log = session.exec(statement).first()
        record_read(log)
        return log
