"""
Fixtures for supporting document and staging tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser
from app.modules.applications.models import Application, ApplicationStatus, PaymentStatus
from app.modules.documents.models import DocumentType, SupportingDocument


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis():
    """Async Redis double with the hash commands staging uses."""
    redis = AsyncMock()
    redis.hsetnx = AsyncMock(return_value=1)
    redis.expire = AsyncMock(return_value=True)
    redis.hset = AsyncMock(return_value=1)
    redis.hgetall = AsyncMock(return_value={})
    redis.hget = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.pipeline = MagicMock()
    pipe = AsyncMock()
    pipe.hgetall = MagicMock()
    pipe.delete = MagicMock()
    pipe.execute = AsyncMock(return_value=[{}, 0])
    redis.pipeline.return_value = pipe
    return redis


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
def sample_application():
    app = MagicMock(spec=Application)
    app.id = 10
    app.user_id = 1
    app.status = ApplicationStatus.SUBMITTED
    app.payment_status = PaymentStatus.PENDING
    return app


@pytest.fixture
def sample_document():
    doc = MagicMock(spec=SupportingDocument)
    doc.id = 55
    doc.application_id = 10
    doc.document_type = DocumentType.CV
    doc.file_name = "cv.pdf"
    doc.storage_public_id = "fellowship-applications/1760000000000-cv"
    return doc


@pytest.fixture
def mock_storage():
    storage = MagicMock()
    storage.upload = AsyncMock()
    storage.delete = AsyncMock()
    return storage
