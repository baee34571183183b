"""
Fixtures for payment tests.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser
from app.modules.applications.models import Application, ApplicationStatus, PaymentStatus
from app.modules.payments.gateway import TransactionInit, TransactionVerification
from app.modules.payments.models import Payment
from app.modules.users.models import User

REFERENCE = "APP-123456-ABCDEF-1760000000000"


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis():
    return AsyncMock()


@pytest.fixture
def applicant():
    return CurrentUser(id=1, email="ada@example.com", role="user", name="Ada Obi")


@pytest.fixture
def other_user():
    return CurrentUser(id=2, email="eve@example.com", role="user", name="Eve")


@pytest.fixture
def sample_application():
    app = MagicMock(spec=Application)
    app.id = 10
    app.application_number = "APP-123456-ABCDEF"
    app.user_id = 1
    app.cohort_id = 3
    app.full_name = "Ada Obi"
    app.email = "ada@example.com"
    app.status = ApplicationStatus.SUBMITTED
    app.payment_status = PaymentStatus.PENDING
    app.application_fee = Decimal("100000.00")
    app.fee_currency = "NGN"
    return app


@pytest.fixture
def sample_owner():
    user = MagicMock(spec=User)
    user.id = 1
    user.name = "Ada Obi"
    user.email = "ada@example.com"
    return user


@pytest.fixture
def pending_payment():
    payment = MagicMock(spec=Payment)
    payment.id = 4
    payment.application_id = 10
    payment.reference = REFERENCE
    payment.amount = Decimal("100000.00")
    payment.currency = "NGN"
    payment.status = PaymentStatus.PENDING
    return payment


@pytest.fixture
def successful_verification():
    return TransactionVerification(
        reference=REFERENCE,
        status="success",
        paid_amount=10_000_000,
        paid_at=datetime(2026, 2, 2, 9, 30, tzinfo=UTC),
        channel="card",
        customer_email="ada@example.com",
        successful=True,
    )


@pytest.fixture
def mock_gateway(successful_verification):
    gateway = MagicMock()
    gateway.initialize_transaction = AsyncMock(
        return_value=TransactionInit(
            authorization_url="https://checkout.paystack.com/abc123",
            access_code="abc123",
            reference=REFERENCE,
        )
    )
    gateway.verify_transaction = AsyncMock(return_value=successful_verification)
    return gateway
