"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates every table of the fellowship portal:
1. users, cohorts, tracks, fee_configurations
2. applications and their child collections
3. supporting_documents, payments, certificates
4. notification_failures (dead-letter table for lifecycle emails)

Enum types store the Python enum member names (upper case), matching
SQLAlchemy's default Enum mapping.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUMS = {
    "user_role": ("USER", "ADMIN"),
    "cohort_status": ("OPEN", "CLOSED", "COMPLETED"),
    "gender": ("MALE", "FEMALE", "OTHER"),
    "participation_mode": ("PHYSICAL", "VIRTUAL"),
    "payment_status": ("PENDING", "COMPLETED", "FAILED"),
    "admission_status": ("PENDING", "APPROVED", "DECLINED"),
    "application_status": ("DRAFT", "SUBMITTED", "UNDER_REVIEW", "APPROVED", "DECLINED"),
    "document_type": (
        "ACADEMIC_CERTIFICATE",
        "PROFESSIONAL_CERTIFICATE",
        "CV",
        "PASSPORT_PHOTO",
        "IDENTIFICATION",
        "OTHER",
    ),
    "certificate_status": ("GENERATED", "ISSUED", "REVOKED"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _application_fk() -> sa.Column:
    return sa.Column(
        "application_id",
        sa.Integer(),
        sa.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all tables."""
    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False, server_default="USER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("last_signed_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "cohorts",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("application_deadline", sa.Date(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("status", _enum("cohort_status"), nullable=False, server_default="OPEN"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cohorts_year_month", "cohorts", ["year", "month"], unique=False)

    op.create_table(
        "tracks",
        *_base_columns(),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_tracks_code"),
    )

    op.create_table(
        "fee_configurations",
        *_base_columns(),
        sa.Column(
            "cohort_id",
            sa.Integer(),
            sa.ForeignKey("cohorts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="NGN"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_fee_configurations_cohort_active",
        "fee_configurations",
        ["cohort_id", "is_active"],
        unique=False,
    )

    op.create_table(
        "applications",
        *_base_columns(),
        sa.Column("application_number", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "cohort_id",
            sa.Integer(),
            sa.ForeignKey("cohorts.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        # Personal information
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=50), nullable=True),
        sa.Column("title_other", sa.String(length=50), nullable=True),
        sa.Column("date_of_birth", sa.String(length=10), nullable=True),
        sa.Column("gender", _enum("gender"), nullable=True),
        sa.Column("nationality", sa.String(length=100), nullable=True),
        sa.Column("country_of_residence", sa.String(length=100), nullable=True),
        sa.Column("contact_address", sa.Text(), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("mobile_number", sa.String(length=20), nullable=False),
        sa.Column("whatsapp_number", sa.String(length=20), nullable=True),
        sa.Column("linkedin_profile", sa.String(length=500), nullable=True),
        # Programme
        sa.Column("participation_mode", _enum("participation_mode"), nullable=False),
        sa.Column("selected_tracks", postgresql.JSON(), nullable=False),
        # Qualifications and experience summary
        sa.Column("highest_qualification", sa.String(length=100), nullable=True),
        sa.Column("class_of_degree", sa.String(length=50), nullable=True),
        sa.Column("membership_number", sa.String(length=100), nullable=True),
        sa.Column("is_institute_member", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("total_years_experience", sa.Integer(), nullable=True),
        # Eligibility, statement and declaration
        sa.Column("eligibility_category", sa.String(length=255), nullable=False),
        sa.Column("statement_of_purpose", sa.Text(), nullable=False),
        sa.Column("declaration_accepted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("data_consent_accepted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("signature_data", sa.Text(), nullable=True),
        # Fee snapshot and payment
        sa.Column("application_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("fee_currency", sa.String(length=3), nullable=False, server_default="NGN"),
        sa.Column("payment_status", _enum("payment_status"), nullable=False, server_default="PENDING"),
        sa.Column("payment_reference", sa.String(length=100), nullable=True),
        # Review
        sa.Column(
            "admission_status", _enum("admission_status"), nullable=False, server_default="PENDING"
        ),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("verified_by", sa.String(length=255), nullable=True),
        sa.Column("date_of_approval", sa.DateTime(timezone=True), nullable=True),
        # Workflow
        sa.Column("status", _enum("application_status"), nullable=False, server_default="DRAFT"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_number", name="uq_applications_application_number"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"], unique=False)
    op.create_index("ix_applications_cohort_id", "applications", ["cohort_id"], unique=False)
    op.create_index("ix_applications_status", "applications", ["status"], unique=False)
    op.create_index("ix_applications_payment_status", "applications", ["payment_status"], unique=False)

    op.create_table(
        "academic_qualifications",
        *_base_columns(),
        _application_fk(),
        sa.Column("qualification", sa.String(length=100), nullable=False),
        sa.Column("discipline", sa.String(length=100), nullable=False),
        sa.Column("institution", sa.String(length=255), nullable=False),
        sa.Column("year_obtained", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "professional_qualifications",
        *_base_columns(),
        _application_fk(),
        sa.Column("professional_body", sa.String(length=100), nullable=False),
        sa.Column("designation", sa.String(length=100), nullable=False),
        sa.Column("year_admitted", sa.Integer(), nullable=False),
        sa.Column("membership_status", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "employment_history",
        *_base_columns(),
        _application_fk(),
        sa.Column("organization", sa.String(length=255), nullable=False),
        sa.Column("position_held", sa.String(length=100), nullable=False),
        sa.Column("period_from", sa.String(length=10), nullable=False),
        sa.Column("period_to", sa.String(length=10), nullable=False),
        sa.Column("key_responsibilities", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "referees",
        *_base_columns(),
        _application_fk(),
        sa.Column("referee_name", sa.String(length=255), nullable=False),
        sa.Column("position_organization", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    for table in ("academic_qualifications", "professional_qualifications", "employment_history", "referees"):
        op.create_index(op.f(f"ix_{table}_application_id"), table, ["application_id"], unique=False)

    op.create_table(
        "supporting_documents",
        *_base_columns(),
        _application_fk(),
        sa.Column("document_type", _enum("document_type"), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("storage_url", sa.Text(), nullable=False),
        sa.Column("storage_public_id", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(length=50), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_supporting_documents_application_id"),
        "supporting_documents",
        ["application_id"],
        unique=False,
    )

    op.create_table(
        "payments",
        *_base_columns(),
        _application_fk(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="NGN"),
        sa.Column("reference", sa.String(length=100), nullable=False),
        sa.Column("access_code", sa.String(length=100), nullable=True),
        sa.Column("status", _enum("payment_status"), nullable=False, server_default="PENDING"),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("receipt_url", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reference", name="uq_payments_reference"),
    )
    op.create_index(op.f("ix_payments_application_id"), "payments", ["application_id"], unique=False)
    op.create_index(op.f("ix_payments_user_id"), "payments", ["user_id"], unique=False)

    op.create_table(
        "certificates",
        *_base_columns(),
        _application_fk(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("certificate_number", sa.String(length=50), nullable=False),
        sa.Column("track_code", sa.String(length=20), nullable=False),
        sa.Column("post_nominals", sa.String(length=20), nullable=False),
        sa.Column("issued_date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("certificate_url", sa.Text(), nullable=True),
        sa.Column("status", _enum("certificate_status"), nullable=False, server_default="GENERATED"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("certificate_number", name="uq_certificates_certificate_number"),
    )
    op.create_index(op.f("ix_certificates_application_id"), "certificates", ["application_id"], unique=False)
    op.create_index(op.f("ix_certificates_user_id"), "certificates", ["user_id"], unique=False)

    op.create_table(
        "notification_failures",
        *_base_columns(),
        sa.Column("event", sa.String(length=50), nullable=False),
        sa.Column("recipient", sa.String(length=320), nullable=True),
        sa.Column("payload", postgresql.JSON(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notification_failures_resolved_at",
        "notification_failures",
        ["resolved_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop all tables and enum types."""
    for table in (
        "notification_failures",
        "certificates",
        "payments",
        "supporting_documents",
        "referees",
        "employment_history",
        "professional_qualifications",
        "academic_qualifications",
        "applications",
        "fee_configurations",
        "tracks",
        "cohorts",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        _enum(name).drop(bind, checkfirst=True)
