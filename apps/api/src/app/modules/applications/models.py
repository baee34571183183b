"""
Fellowship Application Models

An application is one applicant's attempt at one cohort. It tracks three
independent axes:

- ``status``: workflow progress (draft -> submitted -> under_review/approved/declined)
- ``admission_status``: the reviewer's verdict (pending/approved/declined)
- ``payment_status``: whether the application fee has cleared

``version`` is bumped on every write to the application row and used as
the compare-and-swap token for submits, edits and admin decisions.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.modules.shared import BaseModel


class ApplicationStatus(str, enum.Enum):
    """Workflow status of an application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    DECLINED = "declined"


class AdmissionStatus(str, enum.Enum):
    """Reviewer's admission verdict."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class PaymentStatus(str, enum.Enum):
    """Fee payment status, shared by applications and payment attempts."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ParticipationMode(str, enum.Enum):
    PHYSICAL = "physical"
    VIRTUAL = "virtual"


class Application(BaseModel):
    """Fellowship application."""

    __tablename__ = "applications"

    application_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    cohort_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cohorts.id", ondelete="RESTRICT"), nullable=False
    )

    # Personal information
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str | None] = mapped_column(String(50), nullable=True)
    title_other: Mapped[str | None] = mapped_column(String(50), nullable=True)
    date_of_birth: Mapped[str | None] = mapped_column(String(10), nullable=True)
    gender: Mapped[Gender | None] = mapped_column(Enum(Gender, name="gender"), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country_of_residence: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(20), nullable=False)
    whatsapp_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    linkedin_profile: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Programme selection
    participation_mode: Mapped[ParticipationMode] = mapped_column(
        Enum(ParticipationMode, name="participation_mode"), nullable=False
    )
    selected_tracks: Mapped[list] = mapped_column(JSON, nullable=False)

    # Qualifications and experience summary
    highest_qualification: Mapped[str | None] = mapped_column(String(100), nullable=True)
    class_of_degree: Mapped[str | None] = mapped_column(String(50), nullable=True)
    membership_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_institute_member: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_years_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Eligibility, statement and declaration
    eligibility_category: Mapped[str] = mapped_column(String(255), nullable=False)
    statement_of_purpose: Mapped[str] = mapped_column(Text, nullable=False)
    declaration_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    data_consent_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    signature_data: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Fee snapshot and payment
    application_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    fee_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="NGN")
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Review (official use)
    admission_status: Mapped[AdmissionStatus] = mapped_column(
        Enum(AdmissionStatus, name="admission_status"),
        nullable=False,
        default=AdmissionStatus.PENDING,
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_approval: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Workflow
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Child collections
    academic_qualifications: Mapped[list["AcademicQualification"]] = relationship(
        back_populates="application", cascade="all, delete-orphan", lazy="selectin"
    )
    professional_qualifications: Mapped[list["ProfessionalQualification"]] = relationship(
        back_populates="application", cascade="all, delete-orphan", lazy="selectin"
    )
    employment_history: Mapped[list["EmploymentRecord"]] = relationship(
        back_populates="application", cascade="all, delete-orphan", lazy="selectin"
    )
    referees: Mapped[list["Referee"]] = relationship(
        back_populates="application", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_applications_user_id", "user_id"),
        Index("ix_applications_cohort_id", "cohort_id"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_payment_status", "payment_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, number={self.application_number}, "
            f"status={self.status.value})>"
        )


class AcademicQualification(BaseModel):
    __tablename__ = "academic_qualifications"

    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qualification: Mapped[str] = mapped_column(String(100), nullable=False)
    discipline: Mapped[str] = mapped_column(String(100), nullable=False)
    institution: Mapped[str] = mapped_column(String(255), nullable=False)
    year_obtained: Mapped[int] = mapped_column(Integer, nullable=False)

    application: Mapped["Application"] = relationship(back_populates="academic_qualifications")


class ProfessionalQualification(BaseModel):
    __tablename__ = "professional_qualifications"

    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    professional_body: Mapped[str] = mapped_column(String(100), nullable=False)
    designation: Mapped[str] = mapped_column(String(100), nullable=False)
    year_admitted: Mapped[int] = mapped_column(Integer, nullable=False)
    membership_status: Mapped[str] = mapped_column(String(50), nullable=False)

    application: Mapped["Application"] = relationship(
        back_populates="professional_qualifications"
    )


class EmploymentRecord(BaseModel):
    __tablename__ = "employment_history"

    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    organization: Mapped[str] = mapped_column(String(255), nullable=False)
    position_held: Mapped[str] = mapped_column(String(100), nullable=False)
    period_from: Mapped[str] = mapped_column(String(10), nullable=False)
    period_to: Mapped[str] = mapped_column(String(10), nullable=False)
    key_responsibilities: Mapped[str | None] = mapped_column(Text, nullable=True)

    application: Mapped["Application"] = relationship(back_populates="employment_history")


class Referee(BaseModel):
    __tablename__ = "referees"

    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    referee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position_organization: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)

    application: Mapped["Application"] = relationship(back_populates="referees")
