from __future__ import annotations

import itertools
import os
import time
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

_OBJECT_ID_COUNTER = itertools.count(int.from_bytes(os.urandom(3), "big"))
_OBJECT_ID_PROCESS = os.urandom(5)


def now_utc() -> datetime:
    return datetime.now(UTC)


def object_id() -> str:
    """Return a 24 hex char id whose lexical order follows creation time."""
    seconds = int(time.time()).to_bytes(4, "big")
    counter = (next(_OBJECT_ID_COUNTER) % 0xFFFFFF).to_bytes(3, "big")
    return (seconds + _OBJECT_ID_PROCESS + counter).hex()


class RecordStatus(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class OfferingStatus(StrEnum):
    OFFERING = "Offering"
    NOT_OFFERING = "Not Offering"


class AccountStatus(StrEnum):
    ACTIVE = "Active"
    LOCKED = "Locked"


class AccountType(StrEnum):
    ORGANIZATION = "Organization"
    USER = "User"


class ContractStatus(StrEnum):
    ACTIVE = "Active"
    CLOSED = "Closed"


class ContractType(StrEnum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CASUAL = "Casual"
    INTERNSHIP = "Internship"
    FIXED_TERM = "Fixed-term"


class PayFrequency(StrEnum):
    MONTHLY = "Monthly"
    TERMLY = "Termly"
    WEEKLY = "Weekly"
    ANNUALLY = "Annually"


class StaffType(StrEnum):
    MAIN = "Main"
    ASSISTANT = "Assistant"


class BillingStatus(StrEnum):
    BILLED = "Billed"
    NOT_BILLED = "Not Billed"


class PaymentStatus(StrEnum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    PENDING = "Pending"
    FAILED = "Failed"


class EventRecord(SQLModel, table=True):
    __tablename__ = "events"

    event_id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_type: str = Field(index=True)
    organisation_id: str = Field(index=True)
    ts: datetime = Field(default_factory=now_utc, index=True)
    actor_id: str | None = Field(default=None, index=True)
    payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )


class Organisation(SQLModel, table=True):
    __tablename__ = "organisations"

    id: str = Field(default_factory=object_id, primary_key=True)
    name: str = Field(index=True)
    initial: str
    email: str = Field(index=True, unique=True)
    phone: str
    country: str
    status: AccountStatus = Field(default=AccountStatus.ACTIVE, index=True)
    default_role_id: str | None = Field(default=None)
    settings: dict[str, Any] = Field(
        default_factory=lambda: {"log_activity": True},
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Role(SQLModel, table=True):
    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("organisation_id", "name", name="uq_roles_organisation_name"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    created_by: str | None = Field(default=None, index=True)
    name: str = Field(index=True)
    description: str | None = None
    absolute_admin: bool = Field(default=False)
    tab_access: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Account(SQLModel, table=True):
    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("organisation_id", "email", name="uq_accounts_organisation_email"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    account_type: AccountType = Field(default=AccountType.USER, index=True)
    staff_id: str | None = Field(default=None, index=True)
    role_id: str | None = Field(default=None, foreign_key="roles.id", index=True)
    name: str
    email: str = Field(index=True)
    password_hash: str
    status: AccountStatus = Field(default=AccountStatus.ACTIVE, index=True)
    unique_tab_access: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_logs"
    __table_args__ = (Index("ix_activity_logs_organisation_id_id", "organisation_id", "id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(index=True)
    account_id: str = Field(index=True)
    log_action: str
    record_model: str = Field(index=True)
    record_id: str = Field(index=True)
    record_name: str | None = None
    record_change: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    log_date: datetime = Field(default_factory=now_utc, index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class Billing(SQLModel, table=True):
    __tablename__ = "billings"
    __table_args__ = (
        UniqueConstraint("organisation_id", "billing_month", name="uq_billings_organisation_month"),
        UniqueConstraint("organisation_id", "billing_id", name="uq_billings_organisation_billing_id"),
    )

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(index=True)
    billing_id: str = Field(index=True)
    billing_month: str = Field(index=True)
    billing_date: str
    billing_status: BillingStatus = Field(default=BillingStatus.NOT_BILLED, index=True)
    payment_status: PaymentStatus = Field(default=PaymentStatus.UNPAID, index=True)
    total_cost: float = Field(default=0.0)
    render_base_cost: float = Field(default=0.0)
    render_bandwidth: float = Field(default=0.0)
    render_compute_seconds: float = Field(default=0.0)
    database_storage_and_backup: float = Field(default=0.0)
    database_operation: float = Field(default=0.0)
    database_data_transfer: float = Field(default=0.0)
    cloud_storage_gb_stored: float = Field(default=0.0)
    cloud_storage_gb_downloaded: float = Field(default=0.0)
    cloud_storage_upload_operation: float = Field(default=0.0)
    cloud_storage_download_operation: float = Field(default=0.0)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Staff(SQLModel, table=True):
    __tablename__ = "staff"
    __table_args__ = (
        UniqueConstraint("organisation_id", "custom_id", name="uq_staff_organisation_custom_id"),
        UniqueConstraint("organisation_id", "email", name="uq_staff_organisation_email"),
    )

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    custom_id: str = Field(index=True)
    full_name: str
    date_of_birth: str
    gender: str = Field(index=True)
    phone: str
    email: str
    address: str
    post_code: str | None = None
    marital_status: str
    start_date: str
    end_date: str | None = None
    nationality: str
    allergies: str | None = None
    next_of_kin_name: str
    next_of_kin_relationship: str
    next_of_kin_phone: str
    next_of_kin_email: str
    skills: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    qualifications: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class StaffContract(SQLModel, table=True):
    __tablename__ = "staff_contracts"
    __table_args__ = (
        UniqueConstraint("organisation_id", "custom_id", name="uq_staff_contracts_organisation_custom_id"),
        Index("ix_staff_contracts_organisation_staff_status", "organisation_id", "staff_id", "status"),
    )

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    staff_id: str = Field(foreign_key="staff.id", index=True)
    custom_id: str = Field(index=True)
    staff_full_name: str
    job_title: str = Field(index=True)
    contract_type: ContractType = Field(index=True)
    contract_start_date: str
    contract_end_date: str | None = None
    status: ContractStatus = Field(default=ContractStatus.ACTIVE, index=True)
    department: str | None = None
    salary: float = Field(default=0.0)
    pay_frequency: PayFrequency | None = None
    responsibilities: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Student(SQLModel, table=True):
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("organisation_id", "custom_id", name="uq_students_organisation_custom_id"),
        UniqueConstraint("organisation_id", "email", name="uq_students_organisation_email"),
    )

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    custom_id: str = Field(index=True)
    full_name: str
    date_of_birth: str
    gender: str = Field(index=True)
    phone: str
    email: str
    address: str
    post_code: str | None = None
    start_date: str
    end_date: str | None = None
    nationality: str
    allergies: str | None = None
    next_of_kin_name: str
    next_of_kin_relationship: str
    next_of_kin_phone: str
    next_of_kin_email: str
    identification: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    qualifications: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Programme(SQLModel, table=True):
    __tablename__ = "programmes"
    __table_args__ = (UniqueConstraint("organisation_id", "custom_id", name="uq_programmes_organisation_custom_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    custom_id: str = Field(index=True)
    programme: str
    description: str | None = None
    duration: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: OfferingStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Course(SQLModel, table=True):
    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("organisation_id", "custom_id", name="uq_courses_organisation_custom_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    programme_id: str = Field(foreign_key="programmes.id", index=True)
    custom_id: str = Field(index=True)
    course_name: str
    course_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Level(SQLModel, table=True):
    __tablename__ = "levels"
    __table_args__ = (UniqueConstraint("organisation_id", "custom_id", name="uq_levels_organisation_custom_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    course_id: str = Field(foreign_key="courses.id", index=True)
    custom_id: str = Field(index=True)
    level: str
    level_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Subject(SQLModel, table=True):
    __tablename__ = "subjects"
    __table_args__ = (UniqueConstraint("organisation_id", "custom_id", name="uq_subjects_organisation_custom_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    level_id: str = Field(foreign_key="levels.id", index=True)
    course_id: str = Field(foreign_key="courses.id", index=True)
    custom_id: str = Field(index=True)
    subject: str
    subject_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Topic(SQLModel, table=True):
    __tablename__ = "topics"
    __table_args__ = (UniqueConstraint("organisation_id", "custom_id", name="uq_topics_organisation_custom_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    custom_id: str = Field(index=True)
    topic: str
    description: str | None = None
    status: OfferingStatus = Field(index=True)
    resources: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    learning_objectives: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Syllabus(SQLModel, table=True):
    __tablename__ = "syllabuses"
    __table_args__ = (UniqueConstraint("organisation_id", "custom_id", name="uq_syllabuses_organisation_custom_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    subject_id: str = Field(foreign_key="subjects.id", index=True)
    custom_id: str = Field(index=True)
    syllabus: str
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    status: RecordStatus = Field(index=True)
    topics: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    learning_outcomes: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    notes: str | None = None
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class ProgrammeManager(SQLModel, table=True):
    __tablename__ = "programme_managers"
    __table_args__ = (Index("ix_programme_managers_org_parent_staff", "organisation_id", "programme_id", "staff_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    programme_id: str = Field(foreign_key="programmes.id", index=True)
    staff_id: str = Field(foreign_key="staff.id", index=True)
    staff_full_name: str
    staff_type: StaffType = Field(default=StaffType.MAIN)
    managed_from: str
    managed_until: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class CourseManager(SQLModel, table=True):
    __tablename__ = "course_managers"
    __table_args__ = (Index("ix_course_managers_org_parent_staff", "organisation_id", "course_id", "staff_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    course_id: str = Field(foreign_key="courses.id", index=True)
    staff_id: str = Field(foreign_key="staff.id", index=True)
    staff_full_name: str
    staff_type: StaffType = Field(default=StaffType.MAIN)
    managed_from: str
    managed_until: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class LevelManager(SQLModel, table=True):
    __tablename__ = "level_managers"
    __table_args__ = (Index("ix_level_managers_org_parent_staff", "organisation_id", "level_id", "staff_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    level_id: str = Field(foreign_key="levels.id", index=True)
    staff_id: str = Field(foreign_key="staff.id", index=True)
    staff_full_name: str
    staff_type: StaffType = Field(default=StaffType.MAIN)
    managed_from: str
    managed_until: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class SubjectTeacher(SQLModel, table=True):
    __tablename__ = "subject_teachers"
    __table_args__ = (Index("ix_subject_teachers_org_parent_staff", "organisation_id", "subject_id", "staff_id"),)

    id: str = Field(default_factory=object_id, primary_key=True)
    organisation_id: str = Field(foreign_key="organisations.id", index=True)
    subject_id: str = Field(foreign_key="subjects.id", index=True)
    staff_id: str = Field(foreign_key="staff.id", index=True)
    staff_full_name: str
    staff_type: StaffType = Field(default=StaffType.MAIN)
    managed_from: str
    managed_until: str | None = None
    status: RecordStatus = Field(index=True)
    search_text: str = Field(default="")
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class EventEnvelope(BaseModel):
    event_id: str = PydanticField(default_factory=lambda: str(uuid4()))
    event_type: str
    organisation_id: str
    ts: datetime = PydanticField(default_factory=now_utc)
    actor_id: str | None = None
    payload: dict[str, Any]


class ORMReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# accounts


class SignupRequest(BaseModel):
    organisation_name: str
    organisation_initial: str
    organisation_email: str
    organisation_phone: str
    organisation_country: str
    organisation_password: str
    organisation_confirm_password: str


class SigninRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    account: AccountRead


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class OrganisationRead(ORMReadModel):
    id: str
    name: str
    initial: str
    email: str
    phone: str
    country: str
    status: AccountStatus
    default_role_id: str | None = None
    settings: dict[str, Any]
    created_at: datetime


class OrganisationSettingsUpdate(BaseModel):
    settings: dict[str, Any]


class AccountRead(ORMReadModel):
    id: str
    organisation_id: str
    account_type: AccountType
    staff_id: str | None = None
    role_id: str | None = None
    name: str
    email: str
    status: AccountStatus
    unique_tab_access: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    staff_id: str
    name: str
    email: str
    password: str
    status: AccountStatus = AccountStatus.ACTIVE
    role_id: str | None = None
    unique_tab_access: list[dict[str, Any]] = PydanticField(default_factory=list)


class UserUpdate(BaseModel):
    staff_id: str | None = None
    name: str
    email: str
    password: str = "unchanged"
    status: AccountStatus
    role_id: str | None = None
    unique_tab_access: list[dict[str, Any]] | None = None


class RoleCreate(BaseModel):
    name: str
    description: str | None = None
    tab_access: list[dict[str, Any]] = PydanticField(default_factory=list)


class RoleUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    tab_access: list[dict[str, Any]] | None = None


class RoleRead(ORMReadModel):
    id: str
    organisation_id: str
    created_by: str | None = None
    name: str
    description: str | None = None
    absolute_admin: bool
    tab_access: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class ActivityLogRead(ORMReadModel):
    id: str
    organisation_id: str
    account_id: str
    log_action: str
    record_model: str
    record_id: str
    record_name: str | None = None
    record_change: list[dict[str, Any]]
    log_date: datetime


class BillingRead(ORMReadModel):
    id: str
    organisation_id: str
    billing_id: str
    billing_month: str
    billing_date: str
    billing_status: BillingStatus
    payment_status: PaymentStatus
    total_cost: float
    render_base_cost: float
    render_bandwidth: float
    render_compute_seconds: float
    database_storage_and_backup: float
    database_operation: float
    database_data_transfer: float
    cloud_storage_gb_stored: float
    cloud_storage_gb_downloaded: float
    cloud_storage_upload_operation: float
    cloud_storage_download_operation: float
    created_at: datetime


# staff and students


class StaffCreate(BaseModel):
    custom_id: str
    full_name: str
    date_of_birth: str
    gender: str
    phone: str
    email: str
    address: str
    post_code: str | None = None
    marital_status: str
    start_date: str
    end_date: str | None = None
    nationality: str
    allergies: str | None = None
    next_of_kin_name: str
    next_of_kin_relationship: str
    next_of_kin_phone: str
    next_of_kin_email: str
    skills: list[str] = PydanticField(default_factory=list)
    qualifications: list[dict[str, Any]] = PydanticField(default_factory=list)


class StaffUpdate(BaseModel):
    full_name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    post_code: str | None = None
    marital_status: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    nationality: str | None = None
    allergies: str | None = None
    next_of_kin_name: str | None = None
    next_of_kin_relationship: str | None = None
    next_of_kin_phone: str | None = None
    next_of_kin_email: str | None = None
    skills: list[str] | None = None
    qualifications: list[dict[str, Any]] | None = None


class StaffRead(ORMReadModel):
    id: str
    organisation_id: str
    custom_id: str
    full_name: str
    date_of_birth: str
    gender: str
    phone: str
    email: str
    address: str
    post_code: str | None = None
    marital_status: str
    start_date: str
    end_date: str | None = None
    nationality: str
    allergies: str | None = None
    next_of_kin_name: str
    next_of_kin_relationship: str
    next_of_kin_phone: str
    next_of_kin_email: str
    skills: list[str]
    qualifications: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class StaffContractCreate(BaseModel):
    staff_id: str
    custom_id: str
    job_title: str
    contract_type: ContractType
    contract_start_date: str
    contract_end_date: str | None = None
    status: ContractStatus = ContractStatus.ACTIVE
    department: str | None = None
    salary: float = 0.0
    pay_frequency: PayFrequency | None = None
    responsibilities: list[dict[str, Any]] = PydanticField(default_factory=list)


class StaffContractUpdate(BaseModel):
    job_title: str | None = None
    contract_type: ContractType | None = None
    contract_start_date: str | None = None
    contract_end_date: str | None = None
    status: ContractStatus | None = None
    department: str | None = None
    salary: float | None = None
    pay_frequency: PayFrequency | None = None
    responsibilities: list[dict[str, Any]] | None = None


class StaffContractRead(ORMReadModel):
    id: str
    organisation_id: str
    staff_id: str
    custom_id: str
    staff_full_name: str
    job_title: str
    contract_type: ContractType
    contract_start_date: str
    contract_end_date: str | None = None
    status: ContractStatus
    department: str | None = None
    salary: float
    pay_frequency: PayFrequency | None = None
    responsibilities: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class StudentCreate(BaseModel):
    custom_id: str
    full_name: str
    date_of_birth: str
    gender: str
    phone: str
    email: str
    address: str
    post_code: str | None = None
    start_date: str
    end_date: str | None = None
    nationality: str
    allergies: str | None = None
    next_of_kin_name: str
    next_of_kin_relationship: str
    next_of_kin_phone: str
    next_of_kin_email: str
    identification: list[dict[str, Any]] = PydanticField(default_factory=list)
    qualifications: list[dict[str, Any]] = PydanticField(default_factory=list)


class StudentUpdate(BaseModel):
    full_name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    post_code: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    nationality: str | None = None
    allergies: str | None = None
    next_of_kin_name: str | None = None
    next_of_kin_relationship: str | None = None
    next_of_kin_phone: str | None = None
    next_of_kin_email: str | None = None
    identification: list[dict[str, Any]] | None = None
    qualifications: list[dict[str, Any]] | None = None


class StudentRead(ORMReadModel):
    id: str
    organisation_id: str
    custom_id: str
    full_name: str
    date_of_birth: str
    gender: str
    phone: str
    email: str
    address: str
    post_code: str | None = None
    start_date: str
    end_date: str | None = None
    nationality: str
    allergies: str | None = None
    next_of_kin_name: str
    next_of_kin_relationship: str
    next_of_kin_phone: str
    next_of_kin_email: str
    identification: list[dict[str, Any]]
    qualifications: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime


# curriculum


class ProgrammeCreate(BaseModel):
    custom_id: str
    programme: str
    description: str | None = None
    duration: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: OfferingStatus


class ProgrammeUpdate(BaseModel):
    programme: str | None = None
    description: str | None = None
    duration: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: OfferingStatus | None = None


class ProgrammeRead(ORMReadModel):
    id: str
    organisation_id: str
    custom_id: str
    programme: str
    description: str | None = None
    duration: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: OfferingStatus
    created_at: datetime
    updated_at: datetime


class CourseCreate(BaseModel):
    programme_id: str
    custom_id: str
    course_name: str
    course_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus


class CourseUpdate(BaseModel):
    programme_id: str | None = None
    course_name: str | None = None
    course_full_title: str | None = None
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus | None = None


class CourseRead(ORMReadModel):
    id: str
    organisation_id: str
    programme_id: str
    custom_id: str
    course_name: str
    course_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus
    created_at: datetime
    updated_at: datetime


class LevelCreate(BaseModel):
    course_id: str
    custom_id: str
    level: str
    level_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus


class LevelUpdate(BaseModel):
    course_id: str | None = None
    level: str | None = None
    level_full_title: str | None = None
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus | None = None


class LevelRead(ORMReadModel):
    id: str
    organisation_id: str
    course_id: str
    custom_id: str
    level: str
    level_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    duration: str | None = None
    status: RecordStatus
    created_at: datetime
    updated_at: datetime


class SubjectCreate(BaseModel):
    level_id: str
    custom_id: str
    subject: str
    subject_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    status: RecordStatus


class SubjectUpdate(BaseModel):
    level_id: str | None = None
    subject: str | None = None
    subject_full_title: str | None = None
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    status: RecordStatus | None = None


class SubjectRead(ORMReadModel):
    id: str
    organisation_id: str
    level_id: str
    course_id: str
    custom_id: str
    subject: str
    subject_full_title: str
    description: str | None = None
    offering_start_date: str
    offering_end_date: str | None = None
    status: RecordStatus
    created_at: datetime
    updated_at: datetime


class SyllabusTopicRef(BaseModel):
    topic_id: str
    week: str | None = None


class SyllabusCreate(BaseModel):
    subject_id: str
    custom_id: str
    syllabus: str
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    status: RecordStatus
    topics: list[SyllabusTopicRef] = PydanticField(default_factory=list)
    learning_outcomes: list[str] = PydanticField(default_factory=list)
    notes: str | None = None


class SyllabusUpdate(BaseModel):
    subject_id: str | None = None
    syllabus: str | None = None
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    status: RecordStatus | None = None
    topics: list[SyllabusTopicRef] | None = None
    learning_outcomes: list[str] | None = None
    notes: str | None = None


class SyllabusRead(ORMReadModel):
    id: str
    organisation_id: str
    subject_id: str
    custom_id: str
    syllabus: str
    description: str | None = None
    offering_start_date: str | None = None
    offering_end_date: str | None = None
    status: RecordStatus
    topics: list[dict[str, Any]]
    learning_outcomes: list[str]
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class TopicResource(BaseModel):
    resource_type: str
    resource_name: str
    url: str | None = None


class TopicCreate(BaseModel):
    custom_id: str
    topic: str
    description: str | None = None
    status: OfferingStatus
    resources: list[TopicResource] = PydanticField(default_factory=list)
    learning_objectives: list[str] = PydanticField(default_factory=list)


class TopicUpdate(BaseModel):
    topic: str | None = None
    description: str | None = None
    status: OfferingStatus | None = None
    resources: list[TopicResource] | None = None
    learning_objectives: list[str] | None = None


class TopicRead(ORMReadModel):
    id: str
    organisation_id: str
    custom_id: str
    topic: str
    description: str | None = None
    status: OfferingStatus
    resources: list[dict[str, Any]]
    learning_objectives: list[str]
    created_at: datetime
    updated_at: datetime


class AssignmentCreate(BaseModel):
    parent_id: str
    staff_id: str
    staff_type: StaffType = StaffType.MAIN
    managed_from: str
    managed_until: str | None = None
    status: RecordStatus = RecordStatus.ACTIVE


class AssignmentUpdate(BaseModel):
    staff_type: StaffType | None = None
    managed_from: str | None = None
    managed_until: str | None = None
    status: RecordStatus | None = None


class AssignmentRead(BaseModel):
    id: str
    organisation_id: str
    parent_id: str
    staff_id: str
    staff_full_name: str
    staff_type: StaffType
    managed_from: str
    managed_until: str | None = None
    status: RecordStatus
    created_at: datetime
    updated_at: datetime


TokenResponse.model_rebuild()
