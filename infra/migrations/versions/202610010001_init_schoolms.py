"""init school management tables

Revision ID: 202610010001
Revises:
Create Date: 2026-10-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610010001"
down_revision = None
branch_labels = None
depends_on = None

ASSIGNMENT_TABLES = (
    ("programme_managers", "programme_id", "programmes"),
    ("course_managers", "course_id", "courses"),
    ("level_managers", "level_id", "levels"),
    ("subject_teachers", "subject_id", "subjects"),
)


def _tracked_columns() -> list[sa.Column]:
    return [
        sa.Column("search_text", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _index(table: str, *columns: str) -> None:
    for column in columns:
        op.create_index(f"ix_{table}_{column}", table, [column])


def _org_column() -> sa.Column:
    return sa.Column("organisation_id", sa.String(), sa.ForeignKey("organisations.id"), nullable=False)


def _person_columns() -> list[sa.Column]:
    return [
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("date_of_birth", sa.String(), nullable=False),
        sa.Column("gender", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("post_code", sa.String(), nullable=True),
        sa.Column("start_date", sa.String(), nullable=False),
        sa.Column("end_date", sa.String(), nullable=True),
        sa.Column("nationality", sa.String(), nullable=False),
        sa.Column("allergies", sa.String(), nullable=True),
        sa.Column("next_of_kin_name", sa.String(), nullable=False),
        sa.Column("next_of_kin_relationship", sa.String(), nullable=False),
        sa.Column("next_of_kin_phone", sa.String(), nullable=False),
        sa.Column("next_of_kin_email", sa.String(), nullable=False),
        sa.Column("qualifications", sa.JSON(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("organisation_id", sa.String(), nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("event_id"),
    )
    _index("events", "event_type", "organisation_id", "ts", "actor_id")

    op.create_table(
        "organisations",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("initial", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("country", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("default_role_id", sa.String(), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_organisations_email", "organisations", ["email"], unique=True)
    _index("organisations", "name", "status", "created_at")

    op.create_table(
        "roles",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("absolute_admin", sa.Boolean(), nullable=False),
        sa.Column("tab_access", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "name", name="uq_roles_organisation_name"),
    )
    _index("roles", "organisation_id", "created_by", "name", "created_at")

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("account_type", sa.String(), nullable=False),
        sa.Column("staff_id", sa.String(), nullable=True),
        sa.Column("role_id", sa.String(), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("unique_tab_access", sa.JSON(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "email", name="uq_accounts_organisation_email"),
    )
    _index("accounts", "organisation_id", "account_type", "staff_id", "role_id", "email", "status", "created_at")

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organisation_id", sa.String(), nullable=False),
        sa.Column("account_id", sa.String(), nullable=False),
        sa.Column("log_action", sa.String(), nullable=False),
        sa.Column("record_model", sa.String(), nullable=False),
        sa.Column("record_id", sa.String(), nullable=False),
        sa.Column("record_name", sa.String(), nullable=True),
        sa.Column("record_change", sa.JSON(), nullable=False),
        sa.Column("log_date", sa.DateTime(timezone=True), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("activity_logs", "organisation_id", "account_id", "record_model", "record_id", "log_date")
    op.create_index("ix_activity_logs_organisation_id_id", "activity_logs", ["organisation_id", "id"])

    op.create_table(
        "billings",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organisation_id", sa.String(), nullable=False),
        sa.Column("billing_id", sa.String(), nullable=False),
        sa.Column("billing_month", sa.String(), nullable=False),
        sa.Column("billing_date", sa.String(), nullable=False),
        sa.Column("billing_status", sa.String(), nullable=False),
        sa.Column("payment_status", sa.String(), nullable=False),
        *[
            sa.Column(name, sa.Float(), nullable=False)
            for name in (
                "total_cost",
                "render_base_cost",
                "render_bandwidth",
                "render_compute_seconds",
                "database_storage_and_backup",
                "database_operation",
                "database_data_transfer",
                "cloud_storage_gb_stored",
                "cloud_storage_gb_downloaded",
                "cloud_storage_upload_operation",
                "cloud_storage_download_operation",
            )
        ],
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "billing_month", name="uq_billings_organisation_month"),
        sa.UniqueConstraint("organisation_id", "billing_id", name="uq_billings_organisation_billing_id"),
    )
    _index("billings", "organisation_id", "billing_id", "billing_month", "billing_status", "payment_status", "created_at")

    op.create_table(
        "staff",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        *_person_columns(),
        sa.Column("marital_status", sa.String(), nullable=False),
        sa.Column("skills", sa.JSON(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_staff_organisation_custom_id"),
        sa.UniqueConstraint("organisation_id", "email", name="uq_staff_organisation_email"),
    )
    _index("staff", "organisation_id", "custom_id", "gender", "created_at")

    op.create_table(
        "staff_contracts",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("staff_id", sa.String(), sa.ForeignKey("staff.id"), nullable=False),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("staff_full_name", sa.String(), nullable=False),
        sa.Column("job_title", sa.String(), nullable=False),
        sa.Column("contract_type", sa.String(), nullable=False),
        sa.Column("contract_start_date", sa.String(), nullable=False),
        sa.Column("contract_end_date", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("salary", sa.Float(), nullable=False),
        sa.Column("pay_frequency", sa.String(), nullable=True),
        sa.Column("responsibilities", sa.JSON(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_staff_contracts_organisation_custom_id"),
    )
    _index("staff_contracts", "organisation_id", "staff_id", "custom_id", "job_title", "contract_type", "status", "created_at")
    op.create_index(
        "ix_staff_contracts_organisation_staff_status",
        "staff_contracts",
        ["organisation_id", "staff_id", "status"],
    )

    op.create_table(
        "students",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        *_person_columns(),
        sa.Column("identification", sa.JSON(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_students_organisation_custom_id"),
        sa.UniqueConstraint("organisation_id", "email", name="uq_students_organisation_email"),
    )
    _index("students", "organisation_id", "custom_id", "gender", "created_at")

    op.create_table(
        "programmes",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("programme", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("duration", sa.String(), nullable=True),
        sa.Column("start_date", sa.String(), nullable=True),
        sa.Column("end_date", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_programmes_organisation_custom_id"),
    )
    _index("programmes", "organisation_id", "custom_id", "status", "created_at")

    op.create_table(
        "courses",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("programme_id", sa.String(), sa.ForeignKey("programmes.id"), nullable=False),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("course_name", sa.String(), nullable=False),
        sa.Column("course_full_title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("offering_start_date", sa.String(), nullable=False),
        sa.Column("offering_end_date", sa.String(), nullable=True),
        sa.Column("duration", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_courses_organisation_custom_id"),
    )
    _index("courses", "organisation_id", "programme_id", "custom_id", "status", "created_at")

    op.create_table(
        "levels",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("course_id", sa.String(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("level", sa.String(), nullable=False),
        sa.Column("level_full_title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("offering_start_date", sa.String(), nullable=False),
        sa.Column("offering_end_date", sa.String(), nullable=True),
        sa.Column("duration", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_levels_organisation_custom_id"),
    )
    _index("levels", "organisation_id", "course_id", "custom_id", "status", "created_at")

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("level_id", sa.String(), sa.ForeignKey("levels.id"), nullable=False),
        sa.Column("course_id", sa.String(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("subject", sa.String(), nullable=False),
        sa.Column("subject_full_title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("offering_start_date", sa.String(), nullable=False),
        sa.Column("offering_end_date", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_subjects_organisation_custom_id"),
    )
    _index("subjects", "organisation_id", "level_id", "course_id", "custom_id", "status", "created_at")

    op.create_table(
        "topics",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("topic", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("resources", sa.JSON(), nullable=False),
        sa.Column("learning_objectives", sa.JSON(), nullable=False),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_topics_organisation_custom_id"),
    )
    _index("topics", "organisation_id", "custom_id", "status", "created_at")

    op.create_table(
        "syllabuses",
        sa.Column("id", sa.String(), nullable=False),
        _org_column(),
        sa.Column("subject_id", sa.String(), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("custom_id", sa.String(), nullable=False),
        sa.Column("syllabus", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("offering_start_date", sa.String(), nullable=True),
        sa.Column("offering_end_date", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("topics", sa.JSON(), nullable=False),
        sa.Column("learning_outcomes", sa.JSON(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        *_tracked_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organisation_id", "custom_id", name="uq_syllabuses_organisation_custom_id"),
    )
    _index("syllabuses", "organisation_id", "subject_id", "custom_id", "status", "created_at")

    for table, parent_column, parent_table in ASSIGNMENT_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.String(), nullable=False),
            _org_column(),
            sa.Column(parent_column, sa.String(), sa.ForeignKey(f"{parent_table}.id"), nullable=False),
            sa.Column("staff_id", sa.String(), sa.ForeignKey("staff.id"), nullable=False),
            sa.Column("staff_full_name", sa.String(), nullable=False),
            sa.Column("staff_type", sa.String(), nullable=False),
            sa.Column("managed_from", sa.String(), nullable=False),
            sa.Column("managed_until", sa.String(), nullable=True),
            sa.Column("status", sa.String(), nullable=False),
            *_tracked_columns(),
            sa.PrimaryKeyConstraint("id"),
        )
        _index(table, "organisation_id", parent_column, "staff_id", "status", "created_at")
        op.create_index(
            f"ix_{table}_org_parent_staff",
            table,
            ["organisation_id", parent_column, "staff_id"],
        )


def downgrade() -> None:
    for table, _, _ in reversed(ASSIGNMENT_TABLES):
        op.drop_table(table)
    for table in (
        "syllabuses",
        "topics",
        "subjects",
        "levels",
        "courses",
        "programmes",
        "students",
        "staff_contracts",
        "staff",
        "billings",
        "activity_logs",
        "accounts",
        "roles",
        "organisations",
        "events",
    ):
        op.drop_table(table)
