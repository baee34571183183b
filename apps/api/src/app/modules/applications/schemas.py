"""
Fellowship Application Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.modules.applications.lifecycle import MIN_STATEMENT_OF_PURPOSE_LENGTH, dedupe_tracks
from app.modules.applications.models import (
    AdmissionStatus,
    ApplicationStatus,
    Gender,
    ParticipationMode,
    PaymentStatus,
)

# ============================================
# Child collection rows
# ============================================
# Rows submitted with the create form are permissive: incomplete rows are
# dropped by the service instead of failing the whole form. Rows added one
# at a time afterwards are validated strictly.


class AcademicQualificationRow(BaseModel):
    qualification: str | None = None
    discipline: str | None = None
    institution: str | None = None
    year_obtained: int | None = None


class ProfessionalQualificationRow(BaseModel):
    professional_body: str | None = None
    designation: str | None = None
    year_admitted: int | None = None
    membership_status: str | None = None


class EmploymentRow(BaseModel):
    organization: str | None = None
    position_held: str | None = None
    period_from: str | None = None
    period_to: str | None = None
    key_responsibilities: str | None = None


class RefereeRow(BaseModel):
    referee_name: str | None = None
    position_organization: str | None = None
    email: str | None = None
    phone_number: str | None = None


class AcademicQualificationCreate(BaseModel):
    qualification: str = Field(..., min_length=1, max_length=100)
    discipline: str = Field(..., min_length=1, max_length=100)
    institution: str = Field(..., min_length=1, max_length=255)
    year_obtained: int = Field(..., ge=1900, le=2100)


class ProfessionalQualificationCreate(BaseModel):
    professional_body: str = Field(..., min_length=1, max_length=100)
    designation: str = Field(..., min_length=1, max_length=100)
    year_admitted: int = Field(..., ge=1900, le=2100)
    membership_status: str = Field(..., min_length=1, max_length=50)


class EmploymentCreate(BaseModel):
    organization: str = Field(..., min_length=1, max_length=255)
    position_held: str = Field(..., min_length=1, max_length=100)
    period_from: str = Field(..., min_length=1, max_length=10)
    period_to: str = Field(..., min_length=1, max_length=10)
    key_responsibilities: str | None = None


class RefereeCreate(BaseModel):
    referee_name: str = Field(..., min_length=1, max_length=255)
    position_organization: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=20)


class AcademicQualificationResponse(AcademicQualificationCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int


class ProfessionalQualificationResponse(ProfessionalQualificationCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int


class EmploymentResponse(EmploymentCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int


class RefereeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    referee_name: str
    position_organization: str
    email: str
    phone_number: str


# ============================================
# Application requests
# ============================================


def _normalise_tracks(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    tracks = dedupe_tracks(value)
    if not tracks:
        raise ValueError("At least one track must be selected")
    return tracks


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    cohort_id: int = Field(..., gt=0)

    # Personal information
    full_name: str = Field(..., min_length=1, max_length=255)
    title: str | None = Field(None, max_length=50)
    title_other: str | None = Field(None, max_length=50)
    date_of_birth: str | None = Field(None, max_length=10)
    gender: Gender | None = None
    nationality: str | None = Field(None, max_length=100)
    country_of_residence: str | None = Field(None, max_length=100)
    contact_address: str | None = None
    email: EmailStr
    mobile_number: str = Field(..., min_length=1, max_length=20)
    whatsapp_number: str | None = Field(None, max_length=20)
    linkedin_profile: str | None = Field(None, max_length=500)

    # Programme
    participation_mode: ParticipationMode
    selected_tracks: list[str] = Field(..., min_length=1)

    # Qualifications and experience
    highest_qualification: str | None = Field(None, max_length=100)
    class_of_degree: str | None = Field(None, max_length=50)
    membership_number: str | None = Field(None, max_length=100)
    is_institute_member: bool = False
    total_years_experience: int | None = Field(None, ge=0, le=80)

    eligibility_category: str = Field(..., min_length=1, max_length=255)
    statement_of_purpose: str = Field(..., min_length=MIN_STATEMENT_OF_PURPOSE_LENGTH)

    declaration_accepted: bool = False
    data_consent_accepted: bool = False
    signature_data: str | None = None

    academic_qualifications: list[AcademicQualificationRow] = Field(default_factory=list)
    professional_qualifications: list[ProfessionalQualificationRow] = Field(default_factory=list)
    employment_history: list[EmploymentRow] = Field(default_factory=list)
    referees: list[RefereeRow] = Field(default_factory=list)

    @field_validator("selected_tracks")
    @classmethod
    def normalise_tracks(cls, value: list[str]) -> list[str]:
        return _normalise_tracks(value)


class ApplicationUpdate(BaseModel):
    """
    Request body for PATCH /applications/{id}.

    Only supplied fields are changed. The statement of purpose may be
    shorter than the minimum while drafting; the minimum is enforced again
    on submit.
    """

    full_name: str | None = Field(None, min_length=1, max_length=255)
    title: str | None = Field(None, max_length=50)
    title_other: str | None = Field(None, max_length=50)
    date_of_birth: str | None = Field(None, max_length=10)
    gender: Gender | None = None
    nationality: str | None = Field(None, max_length=100)
    country_of_residence: str | None = Field(None, max_length=100)
    contact_address: str | None = None
    email: EmailStr | None = None
    mobile_number: str | None = Field(None, min_length=1, max_length=20)
    whatsapp_number: str | None = Field(None, max_length=20)
    linkedin_profile: str | None = Field(None, max_length=500)
    participation_mode: ParticipationMode | None = None
    selected_tracks: list[str] | None = Field(None, min_length=1)
    highest_qualification: str | None = Field(None, max_length=100)
    class_of_degree: str | None = Field(None, max_length=50)
    membership_number: str | None = Field(None, max_length=100)
    is_institute_member: bool | None = None
    total_years_experience: int | None = Field(None, ge=0, le=80)
    eligibility_category: str | None = Field(None, min_length=1, max_length=255)
    statement_of_purpose: str | None = None
    declaration_accepted: bool | None = None
    data_consent_accepted: bool | None = None
    signature_data: str | None = None

    @field_validator("selected_tracks")
    @classmethod
    def normalise_tracks(cls, value: list[str] | None) -> list[str] | None:
        return _normalise_tracks(value)


class AdminStatusUpdateRequest(BaseModel):
    """Admin decision on an application."""

    admission_status: AdmissionStatus
    remarks: str | None = Field(None, max_length=2000)
    verified_by: str | None = Field(None, max_length=255)


# ============================================
# Application responses
# ============================================


class ApplicationCreatedResponse(BaseModel):
    id: int
    application_number: str
    status: ApplicationStatus
    application_fee: Decimal
    fee_currency: str


class ApplicationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_number: str
    cohort_id: int
    full_name: str
    email: str
    selected_tracks: list[str]
    status: ApplicationStatus
    admission_status: AdmissionStatus
    payment_status: PaymentStatus
    application_fee: Decimal
    fee_currency: str
    created_at: datetime
    submitted_at: datetime | None = None


class ApplicationResponse(ApplicationSummary):
    user_id: int
    title: str | None = None
    title_other: str | None = None
    date_of_birth: str | None = None
    gender: Gender | None = None
    nationality: str | None = None
    country_of_residence: str | None = None
    contact_address: str | None = None
    mobile_number: str
    whatsapp_number: str | None = None
    linkedin_profile: str | None = None
    participation_mode: ParticipationMode
    highest_qualification: str | None = None
    class_of_degree: str | None = None
    membership_number: str | None = None
    is_institute_member: bool
    total_years_experience: int | None = None
    eligibility_category: str
    statement_of_purpose: str
    declaration_accepted: bool
    data_consent_accepted: bool
    payment_reference: str | None = None
    remarks: str | None = None
    verified_by: str | None = None
    date_of_approval: datetime | None = None
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationSummary]
    total: int
    skip: int
    limit: int
