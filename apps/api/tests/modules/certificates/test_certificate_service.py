"""
Unit tests for certificate generation.
"""

import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.auth import CurrentUser
from app.core.exceptions import ForbiddenError, InvalidStateError, ValidationError
from app.modules.applications.models import AdmissionStatus, Application
from app.modules.certificates.models import CertificateStatus
from app.modules.certificates.service import (
    admin_generate_certificate,
    generate_certificate_number,
    get_certificates_for_application,
)

SERVICE = "app.modules.certificates.service"


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def admin():
    return CurrentUser(id=99, email="admin@example.com", role="admin", name="Reviewer")


@pytest.fixture
def applicant():
    return CurrentUser(id=1, email="ada@example.com", role="user", name="Ada Obi")


@pytest.fixture
def approved_application():
    app = MagicMock(spec=Application)
    app.id = 10
    app.user_id = 1
    app.admission_status = AdmissionStatus.APPROVED
    app.selected_tracks = ["FIBAKM", "FCBA"]
    return app


class TestGenerateCertificateNumber:
    def test_format(self):
        assert re.fullmatch(r"CERT-1760000000000-[A-Z0-9]{6}", generate_certificate_number(1760000000000))


class TestAdminGenerateCertificate:
    """Tests for admin_generate_certificate."""

    @pytest.mark.asyncio
    async def test_generates_for_selected_track(self, mock_db, admin, approved_application):
        with (
            patch(f"{SERVICE}.application_repository") as mock_apps,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_apps.get_by_id = AsyncMock(return_value=approved_application)
            mock_repo.get_active_for_track = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(side_effect=lambda db, certificate: certificate)

            certificate = await admin_generate_certificate(mock_db, 10, admin, " fcba ", "FCBA ")

            assert certificate.track_code == "FCBA"
            assert certificate.post_nominals == "FCBA"
            assert certificate.user_id == 1
            assert certificate.status == CertificateStatus.GENERATED
            assert certificate.certificate_number.startswith("CERT-")

    @pytest.mark.asyncio
    async def test_requires_admin(self, mock_db, applicant):
        with pytest.raises(ForbiddenError):
            await admin_generate_certificate(mock_db, 10, applicant, "FCBA", "FCBA")

    @pytest.mark.asyncio
    async def test_requires_approval(self, mock_db, admin, approved_application):
        approved_application.admission_status = AdmissionStatus.PENDING

        with patch(f"{SERVICE}.application_repository") as mock_apps:
            mock_apps.get_by_id = AsyncMock(return_value=approved_application)

            with pytest.raises(InvalidStateError):
                await admin_generate_certificate(mock_db, 10, admin, "FCBA", "FCBA")

    @pytest.mark.asyncio
    async def test_track_must_be_selected(self, mock_db, admin, approved_application):
        with patch(f"{SERVICE}.application_repository") as mock_apps:
            mock_apps.get_by_id = AsyncMock(return_value=approved_application)

            with pytest.raises(ValidationError):
                await admin_generate_certificate(mock_db, 10, admin, "FCKM", "FCKM")

    @pytest.mark.asyncio
    async def test_one_active_certificate_per_track(self, mock_db, admin, approved_application):
        with (
            patch(f"{SERVICE}.application_repository") as mock_apps,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_apps.get_by_id = AsyncMock(return_value=approved_application)
            mock_repo.get_active_for_track = AsyncMock(return_value=MagicMock())
            mock_repo.create = AsyncMock()

            with pytest.raises(InvalidStateError):
                await admin_generate_certificate(mock_db, 10, admin, "FIBAKM", "FIBAKM")

            mock_repo.create.assert_not_called()


class TestGetCertificatesForApplication:
    @pytest.mark.asyncio
    async def test_stranger_forbidden(self, mock_db, approved_application):
        stranger = CurrentUser(id=5, email="x@example.com", role="user", name="X")

        with patch(f"{SERVICE}.application_repository") as mock_apps:
            mock_apps.get_by_id = AsyncMock(return_value=approved_application)

            with pytest.raises(ForbiddenError):
                await get_certificates_for_application(mock_db, 10, stranger)
