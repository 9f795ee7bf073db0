from __future__ import annotations

from sqlmodel import Session, select

from schoolms.domain.models import (
    ContractStatus,
    CourseManager,
    LevelManager,
    ProgrammeManager,
    Staff,
    StaffContract,
    StaffContractCreate,
    StaffContractUpdate,
    StaffCreate,
    StaffUpdate,
    SubjectTeacher,
)
from schoolms.domain.pagination import PageQuery, PageResult
from schoolms.services.access_service import AccessContext
from schoolms.services.records import (
    ConflictError,
    Hook,
    NotFoundError,
    RecordError,
    RecordStore,
    Resource,
    ValidationError,
    referenced_by,
)

__all__ = ["ConflictError", "NotFoundError", "RecordError", "StaffService", "ValidationError"]

STAFF_PROFILES = Resource(
    model=Staff,
    label="Staff Profile",
    collection="staff",
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
        "marital_status",
        "start_date",
        "nationality",
        "next_of_kin_name",
        "next_of_kin_relationship",
        "next_of_kin_phone",
        "next_of_kin_email",
    ),
    filters=frozenset({"gender", "marital_status", "nationality"}),
    unique_fields=("custom_id", "email"),
)

STAFF_CONTRACTS = Resource(
    model=StaffContract,
    label="Staff Contract",
    collection="staff_contracts",
    name_field="staff_full_name",
    search_fields=("custom_id", "staff_id", "staff_full_name", "job_title", "contract_type", "status", "department"),
    required=("staff_id", "custom_id", "job_title", "contract_type", "contract_start_date"),
    filters=frozenset({"staff_id", "status", "contract_type", "job_title", "pay_frequency"}),
)

ASSIGNMENT_MODELS = (ProgrammeManager, CourseManager, LevelManager, SubjectTeacher)


class StaffService:
    def __init__(self) -> None:
        self.profiles = RecordStore(STAFF_PROFILES)
        self.contracts = RecordStore(STAFF_CONTRACTS)

    # profiles

    def create_staff(self, context: AccessContext, payload: StaffCreate) -> Staff:
        return self.profiles.create(context, payload.model_dump())

    def list_staff(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.profiles.page(context, query)

    def all_staff(self, context: AccessContext) -> list[Staff]:
        return self.profiles.all(context)

    def get_staff(self, context: AccessContext, staff_id: str) -> Staff:
        return self.profiles.fetch(context, staff_id)

    def update_staff(self, context: AccessContext, staff_id: str, payload: StaffUpdate) -> Staff:
        changes = payload.model_dump(exclude_unset=True)

        def _sync_contract_names(session: Session, staff: Staff) -> None:
            if "full_name" not in changes:
                return
            statement = select(StaffContract).where(StaffContract.staff_id == staff.id)
            for contract in session.exec(statement).all():
                contract.staff_full_name = staff.full_name
                session.add(contract)
            for model in ASSIGNMENT_MODELS:
                for assignment in session.exec(select(model).where(model.staff_id == staff.id)).all():
                    assignment.staff_full_name = staff.full_name
                    session.add(assignment)

        return self.profiles.update(context, staff_id, changes, before_save=_sync_contract_names)

    def delete_staff(self, context: AccessContext, staff_id: str) -> None:
        def _guard(session: Session, staff: Staff) -> None:
            if referenced_by(session, StaffContract, "staff_id", staff.id):
                raise ConflictError("This staff profile has contracts - delete them before deleting the profile")
            for model in ASSIGNMENT_MODELS:
                if referenced_by(session, model, "staff_id", staff.id):
                    raise ConflictError(
                        "This staff profile is assigned in the curriculum - remove the assignments first"
                    )

        self.profiles.delete(context, staff_id, guard=_guard)

    # contracts

    def _contract_checks(self, context: AccessContext, exclude_id: str | None = None) -> Hook:
        def _check(session: Session, contract: StaffContract) -> None:
            staff = self.profiles.get(session, context.organisation_id, contract.staff_id)
            if staff is None:
                raise NotFoundError("Staff profile not found - create the staff profile first")
            contract.staff_full_name = staff.full_name
            if contract.status != ContractStatus.ACTIVE:
                return
            statement = (
                select(StaffContract.id)
                .where(StaffContract.organisation_id == context.organisation_id)
                .where(StaffContract.staff_id == contract.staff_id)
                .where(StaffContract.status == ContractStatus.ACTIVE)
            )
            if exclude_id is not None:
                statement = statement.where(StaffContract.id != exclude_id)
            if session.exec(statement).first() is not None:
                raise ConflictError(
                    "This staff member already has an active contract - close it before adding another"
                )

        return _check

    def create_contract(self, context: AccessContext, payload: StaffContractCreate) -> StaffContract:
        values = payload.model_dump()
        values["staff_full_name"] = ""
        return self.contracts.create(context, values, before_save=self._contract_checks(context))

    def list_contracts(self, context: AccessContext, query: PageQuery) -> PageResult:
        return self.contracts.page(context, query)

    def all_contracts(self, context: AccessContext) -> list[StaffContract]:
        return self.contracts.all(context)

    def get_contract(self, context: AccessContext, contract_id: str) -> StaffContract:
        return self.contracts.fetch(context, contract_id)

    def update_contract(
        self,
        context: AccessContext,
        contract_id: str,
        payload: StaffContractUpdate,
    ) -> StaffContract:
        return self.contracts.update(
            context,
            contract_id,
            payload.model_dump(exclude_unset=True),
            before_save=self._contract_checks(context, exclude_id=contract_id),
        )

    def delete_contract(self, context: AccessContext, contract_id: str) -> None:
        self.contracts.delete(context, contract_id)
