"""
Fixtures for fellowship application tests.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser
from app.modules.applications.models import (
    AdmissionStatus,
    Application,
    ApplicationStatus,
    ParticipationMode,
    PaymentStatus,
)
from app.modules.applications.schemas import (
    AcademicQualificationRow,
    ApplicationCreate,
    RefereeRow,
)
from app.modules.cohorts.models import Cohort
from app.modules.users.models import User, UserRole

STATEMENT_250 = "x" * 250


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def applicant():
    return CurrentUser(id=1, email="ada@example.com", role="user", name="Ada Obi")


@pytest.fixture
def other_user():
    return CurrentUser(id=2, email="eve@example.com", role="user", name="Eve")


@pytest.fixture
def admin():
    return CurrentUser(id=99, email="admin@example.com", role="admin", name="Reviewer")


@pytest.fixture
def sample_cohort():
    cohort = MagicMock(spec=Cohort)
    cohort.id = 3
    cohort.name = "March 2026"
    cohort.start_date = date(2026, 3, 20)
    return cohort


@pytest.fixture
def sample_owner():
    user = MagicMock(spec=User)
    user.id = 1
    user.name = "Ada Obi"
    user.email = "ada@example.com"
    user.role = UserRole.USER
    return user


@pytest.fixture
def sample_application_create():
    """A complete create request with one good and one incomplete child row of each kind."""
    return ApplicationCreate(
        cohort_id=3,
        full_name="Ada Obi",
        email="ada@example.com",
        mobile_number="+2348012345678",
        participation_mode=ParticipationMode.VIRTUAL,
        selected_tracks=["fibakm", "FCBA", "FIBAKM"],
        eligibility_category="Banking professional",
        statement_of_purpose=STATEMENT_250,
        declaration_accepted=True,
        data_consent_accepted=True,
        academic_qualifications=[
            AcademicQualificationRow(
                qualification="BSc",
                discipline="Economics",
                institution="University of Lagos",
                year_obtained=2015,
            ),
            AcademicQualificationRow(qualification="MSc", discipline="", institution="UNILAG"),
        ],
        referees=[
            RefereeRow(
                referee_name="Dr. Bello",
                position_organization="Director, CBN",
                email="bello@example.com",
                phone_number="+2348000000000",
            ),
            RefereeRow(referee_name="   "),
        ],
    )


@pytest.fixture
def sample_application():
    """A complete draft application owned by user 1."""
    app = MagicMock(spec=Application)
    app.id = 10
    app.application_number = "APP-123456-ABCDEF"
    app.user_id = 1
    app.cohort_id = 3
    app.full_name = "Ada Obi"
    app.email = "ada@example.com"
    app.mobile_number = "+2348012345678"
    app.eligibility_category = "Banking professional"
    app.statement_of_purpose = STATEMENT_250
    app.selected_tracks = ["FIBAKM"]
    app.declaration_accepted = True
    app.data_consent_accepted = True
    app.status = ApplicationStatus.DRAFT
    app.admission_status = AdmissionStatus.PENDING
    app.payment_status = PaymentStatus.PENDING
    app.application_fee = Decimal("100000.00")
    app.fee_currency = "NGN"
    app.remarks = None
    app.version = 1
    return app


@pytest.fixture
def submitted_application(sample_application):
    sample_application.status = ApplicationStatus.SUBMITTED
    sample_application.submitted_at = datetime(2026, 2, 1, tzinfo=UTC)
    sample_application.version = 2
    return sample_application
