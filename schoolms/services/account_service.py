from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from schoolms.domain.billing import get_object_size
from schoolms.domain.changes import creation_change, generate_search_text, record_diff, to_document
from schoolms.domain.models import (
    Account,
    AccountStatus,
    AccountType,
    Organisation,
    Role,
    SigninRequest,
    SignupRequest,
)
from schoolms.domain.permissions import default_tab_access
from schoolms.domain.validation import validate_email, validate_password
from schoolms.infra.audit import write_activity_log
from schoolms.infra.auth import decode_refresh_token, hash_password, verify_password
from schoolms.infra.db import get_engine
from schoolms.infra.logging import get_logger
from schoolms.infra.redis_state import is_refresh_token_revoked, revoke_refresh_token
from schoolms.infra.usage import bill_to, record_usage

ABSOLUTE_ADMIN_ROLE = "Absolute Admin"
ABSOLUTE_ADMIN_DESCRIPTION = "This is the default role for the organization, it has all permissions"
WEAK_PASSWORD_MESSAGE = (
    "Password must be at least 8 characters long and include upper and lower case letters, "
    "a number and a special character"
)

logger = get_logger(__name__)


class AccountError(Exception):
    pass


class ValidationError(AccountError):
    pass


class ConflictError(AccountError):
    pass


class AuthError(AccountError):
    pass


class AccountService:
    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _validate_signup(self, payload: SignupRequest) -> None:
        required = (
            payload.organisation_name,
            payload.organisation_email,
            payload.organisation_phone,
            payload.organisation_password,
            payload.organisation_confirm_password,
        )
        if any(not value or not value.strip() for value in required):
            raise ValidationError("Please provide all required fields")
        if payload.organisation_password != payload.organisation_confirm_password:
            raise ValidationError("Passwords does not match")
        if not validate_password(payload.organisation_password):
            raise ValidationError(WEAK_PASSWORD_MESSAGE)
        if not validate_email(payload.organisation_email):
            raise ValidationError("Please provide a valid email address")

    def signup_organisation(self, payload: SignupRequest) -> Account:
        self._validate_signup(payload)
        email = payload.organisation_email.strip().lower()
        conflict = ConflictError(f"Organization already has an account with this email: {email}. Please sign in.")

        with self._session() as session:
            if session.exec(select(Organisation.id).where(Organisation.email == email)).first() is not None:
                raise conflict

            organisation = Organisation(
                name=payload.organisation_name.strip(),
                initial=payload.organisation_initial.strip(),
                email=email,
                phone=payload.organisation_phone.strip(),
                country=payload.organisation_country.strip(),
            )
            session.add(organisation)
            session.flush()

            owner = Account(
                organisation_id=organisation.id,
                account_type=AccountType.ORGANIZATION,
                name=organisation.name,
                email=email,
                password_hash=hash_password(payload.organisation_password),
                status=AccountStatus.ACTIVE,
            )
            owner.search_text = generate_search_text([owner.name, owner.email])
            session.add(owner)
            session.flush()
            owner_before = to_document(owner)
            owner_created = creation_change(owner_before)
            write_activity_log(
                session,
                organisation=organisation,
                account_id=owner.id,
                log_action="Initial Organization Account Creation",
                record_model="Account",
                record_id=owner.id,
                record_name=owner.name,
                record_change=owner_created,
            )

            role = Role(
                organisation_id=organisation.id,
                created_by=owner.id,
                name=ABSOLUTE_ADMIN_ROLE,
                description=ABSOLUTE_ADMIN_DESCRIPTION,
                absolute_admin=True,
                tab_access=default_tab_access(),
            )
            session.add(role)
            session.flush()
            write_activity_log(
                session,
                organisation=organisation,
                account_id=owner.id,
                log_action=f"Initial Organization Default Role Creation - {ABSOLUTE_ADMIN_ROLE}",
                record_model="Role",
                record_id=role.id,
                record_name=role.name,
                record_change=creation_change(to_document(role)),
            )

            owner.role_id = role.id
            organisation.default_role_id = role.id
            session.add(owner)
            session.add(organisation)
            write_activity_log(
                session,
                organisation=organisation,
                account_id=owner.id,
                log_action="Updating Organization Account with Default Role",
                record_model="Account",
                record_id=owner.id,
                record_name=owner.name,
                record_change=record_diff(owner_before, to_document(owner)),
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise conflict from exc
            session.refresh(owner)

        created_size = get_object_size(
            [organisation.model_dump(mode="json"), owner.model_dump(mode="json"), role.model_dump(mode="json")]
        )
        record_usage(
            database_operation=5,
            database_data_transfer=created_size,
            database_storage_and_backup=created_size * 2,
        )
        bill_to(organisation.id)
        logger.info("accounts.organisation_signed_up", organisation_id=organisation.id)
        return owner

    def signin(self, payload: SigninRequest) -> Account:
        if not payload.email or not payload.password:
            raise ValidationError("Please provide email and password")
        email = payload.email.strip().lower()
        with self._session() as session:
            candidates = list(session.exec(select(Account).where(Account.email == email)).all())
            if not candidates:
                raise AuthError("No associated account found for this email - Please contact your admin")
            account = next(
                (item for item in candidates if verify_password(payload.password, item.password_hash)),
                None,
            )
            if account is None:
                raise AuthError("Invalid password for associated account")
            organisation = session.get(Organisation, account.organisation_id)
            if organisation is None:
                raise AuthError("No associated account found for this email - Please contact your admin")
            write_activity_log(
                session,
                organisation=organisation,
                account_id=account.id,
                log_action="User Sign In",
                record_model="Account",
                record_id=account.id,
                record_name=account.name,
                record_change=[],
            )
            session.commit()

        record_usage(
            database_operation=len(candidates) + 1,
            database_data_transfer=get_object_size([to_document(item) for item in candidates]),
        )
        bill_to(account.organisation_id)
        return account

    def account_from_refresh_token(self, refresh_token: str) -> Account:
        try:
            claims = decode_refresh_token(refresh_token)
        except Exception as exc:
            raise AuthError("Invalid refresh token") from exc
        if claims.get("jti") and is_refresh_token_revoked(str(claims["jti"])):
            raise AuthError("Refresh token has been revoked - Please sign in again")
        with self._session() as session:
            account = session.get(Account, claims.get("sub"))
            if account is None or account.organisation_id != claims.get("organisation_id"):
                raise AuthError("Invalid refresh token")
            if account.status != AccountStatus.ACTIVE:
                raise AuthError("Your account is not active - Please contact your admin if you need help")
        record_usage(database_operation=1, database_data_transfer=get_object_size(to_document(account)))
        bill_to(account.organisation_id)
        return account

    def revoke_refresh_token(self, refresh_token: str) -> None:
        try:
            claims = decode_refresh_token(refresh_token)
        except Exception:
            return
        token_id = claims.get("jti")
        if token_id:
            revoke_refresh_token(str(token_id), int(claims.get("exp", 0)) - int(time.time()))
            logger.info("account.signout", account_id=claims.get("sub"))
