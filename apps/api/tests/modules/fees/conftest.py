"""
Fixtures for fee configuration tests.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.cohorts.models import Cohort
from app.modules.fees.models import FeeConfiguration


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def sample_cohort():
    cohort = MagicMock(spec=Cohort)
    cohort.id = 3
    cohort.name = "March 2026"
    return cohort


@pytest.fixture
def active_fee():
    fee = MagicMock(spec=FeeConfiguration)
    fee.id = 7
    fee.cohort_id = 3
    fee.amount = Decimal("100000.00")
    fee.currency = "NGN"
    fee.is_active = True
    return fee
