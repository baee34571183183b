"""
Unit tests for the fellowship application service layer.

These tests cover:
- Draft creation with fee snapshot and child row filtering
- Owner/admin access rules
- Submission (completeness checks, compare-and-swap, notification)
- Admin decisions and notifications
- Admin fee refresh
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.exceptions import ForbiddenError, InvalidStateError, ValidationError
from app.modules.applications.models import (
    AcademicQualification,
    AdmissionStatus,
    ApplicationStatus,
    PaymentStatus,
    Referee,
)
from app.modules.applications.schemas import ApplicationUpdate, RefereeCreate
from app.modules.applications.service import (
    ApplicationNotFoundError,
    ChildCollection,
    CohortNotFoundError,
    add_child_row,
    admin_refresh_fee,
    admin_update_status,
    build_child_rows,
    create_application,
    get_application,
    list_child_rows,
    submit_application,
    update_application,
)
from app.modules.fees.service import FeeNotConfiguredError, FeeQuote
from app.modules.notifications.dispatcher import NotificationEvent

SERVICE = "app.modules.applications.service"


class TestBuildChildRows:
    """Tests for create-time child row filtering."""

    def test_incomplete_rows_are_dropped(self, sample_application_create):
        children = build_child_rows(sample_application_create)

        assert len(children) == 2
        assert isinstance(children[0], AcademicQualification)
        assert children[0].institution == "University of Lagos"
        assert isinstance(children[1], Referee)
        assert children[1].referee_name == "Dr. Bello"


class TestCreateApplication:
    """Tests for create_application."""

    @pytest.mark.asyncio
    async def test_creates_draft_with_fee_snapshot(
        self, mock_db, applicant, sample_cohort, sample_application_create
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.cohort_repository") as mock_cohorts,
            patch(
                f"{SERVICE}.resolve_fee",
                new=AsyncMock(return_value=FeeQuote(amount=Decimal("100000.00"), currency="NGN")),
            ),
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_cohorts.get_by_id = AsyncMock(return_value=sample_cohort)
            mock_repo.create = AsyncMock(side_effect=lambda db, application, children: application)

            result = await create_application(mock_db, applicant, sample_application_create)

            assert result.status == ApplicationStatus.DRAFT
            assert result.payment_status == PaymentStatus.PENDING
            assert result.admission_status == AdmissionStatus.PENDING
            assert result.application_fee == Decimal("100000.00")
            assert result.fee_currency == "NGN"
            assert result.user_id == applicant.id
            assert result.selected_tracks == ["FIBAKM", "FCBA"]
            assert result.application_number.startswith("APP-")

            _db, _application, children = mock_repo.create.call_args.args
            assert len(children) == 2
            mock_dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_fee_writes_nothing(
        self, mock_db, applicant, sample_cohort, sample_application_create
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.cohort_repository") as mock_cohorts,
            patch(f"{SERVICE}.resolve_fee", new=AsyncMock(side_effect=FeeNotConfiguredError(3))),
        ):
            mock_cohorts.get_by_id = AsyncMock(return_value=sample_cohort)
            mock_repo.create = AsyncMock()

            with pytest.raises(FeeNotConfiguredError) as exc_info:
                await create_application(mock_db, applicant, sample_application_create)

            assert exc_info.value.error_code == "FEE_NOT_CONFIGURED"
            mock_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_cohort(self, mock_db, applicant, sample_application_create):
        with patch(f"{SERVICE}.cohort_repository") as mock_cohorts:
            mock_cohorts.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(CohortNotFoundError) as exc_info:
                await create_application(mock_db, applicant, sample_application_create)

            assert exc_info.value.status_code == 404


class TestGetApplication:
    """Tests for owner/admin read access."""

    @pytest.mark.asyncio
    async def test_owner_can_read(self, mock_db, applicant, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)

            assert await get_application(mock_db, 10, applicant) is sample_application

    @pytest.mark.asyncio
    async def test_admin_can_read(self, mock_db, admin, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)

            assert await get_application(mock_db, 10, admin) is sample_application

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, mock_db, other_user, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)

            with pytest.raises(ForbiddenError):
                await get_application(mock_db, 10, other_user)

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, applicant):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(ApplicationNotFoundError) as exc_info:
                await get_application(mock_db, 404, applicant)

            assert exc_info.value.error_code == "APPLICATION_NOT_FOUND"


class TestUpdateApplication:
    """Tests for update_application."""

    @pytest.mark.asyncio
    async def test_owner_updates_draft(self, mock_db, applicant, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock(return_value=sample_application)

            await update_application(
                mock_db, 10, applicant, ApplicationUpdate(nationality="Nigerian")
            )

            mock_repo.update_fields.assert_called_once_with(
                mock_db,
                10,
                expected_version=1,
                expected_status=ApplicationStatus.DRAFT,
                nationality="Nigerian",
            )

    @pytest.mark.asyncio
    async def test_owner_edit_racing_submit_is_rejected(self, mock_db, applicant, sample_application):
        # Read as a draft, but a submit committed before the guarded write.
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock(return_value=None)

            with pytest.raises(InvalidStateError) as exc_info:
                await update_application(
                    mock_db, 10, applicant, ApplicationUpdate(statement_of_purpose="Changed")
                )

            assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_owner_cannot_edit_after_submit(self, mock_db, applicant, submitted_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(InvalidStateError):
                await update_application(
                    mock_db, 10, applicant, ApplicationUpdate(nationality="Ghanaian")
                )

            mock_repo.update_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_can_edit_any_status(self, mock_db, admin, submitted_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.update_fields = AsyncMock(return_value=submitted_application)

            await update_application(mock_db, 10, admin, ApplicationUpdate(class_of_degree="First"))

            mock_repo.update_fields.assert_called_once_with(
                mock_db,
                10,
                expected_version=2,
                expected_status=None,
                class_of_degree="First",
            )


class TestSubmitApplication:
    """Tests for submit_application."""

    @pytest.mark.asyncio
    async def test_submit_success(self, mock_db, applicant, sample_application):
        submitted = MagicMock()
        submitted.application_number = sample_application.application_number
        submitted.full_name = sample_application.full_name
        submitted.email = sample_application.email

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=submitted)

            result = await submit_application(mock_db, 10, applicant)

            assert result is submitted
            kwargs = mock_repo.compare_and_swap_status.call_args.kwargs
            assert kwargs["expected_status"] == ApplicationStatus.DRAFT
            assert kwargs["expected_version"] == 1
            assert kwargs["new_status"] == ApplicationStatus.SUBMITTED
            assert kwargs["submitted_at"] is not None

            mock_dispatch.assert_called_once()
            assert mock_dispatch.call_args.args[0] == NotificationEvent.APPLICATION_SUBMITTED
            assert mock_dispatch.call_args.kwargs["to_email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_statement_of_249_characters_rejected(self, mock_db, applicant, sample_application):
        sample_application.statement_of_purpose = "a" * 249

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.compare_and_swap_status = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await submit_application(mock_db, 10, applicant)

            assert "statement_of_purpose" in exc_info.value.message
            mock_repo.compare_and_swap_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, mock_db, other_user, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)

            with pytest.raises(ForbiddenError):
                await submit_application(mock_db, 10, other_user)

    @pytest.mark.asyncio
    async def test_already_submitted(self, mock_db, applicant, submitted_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)

            with pytest.raises(InvalidStateError) as exc_info:
                await submit_application(mock_db, 10, applicant)

            assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_lost_race_is_invalid_state(self, mock_db, applicant, sample_application):
        """A concurrent submit that wins first leaves the loser with InvalidState and no email."""
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=None)

            with pytest.raises(InvalidStateError):
                await submit_application(mock_db, 10, applicant)

            mock_dispatch.assert_not_called()


class TestAdminUpdateStatus:
    """Tests for admin_update_status."""

    @pytest.mark.asyncio
    async def test_approve_stamps_date_and_notifies(
        self, mock_db, admin, submitted_application, sample_owner, sample_cohort
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.cohort_repository") as mock_cohorts,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=submitted_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)
            mock_cohorts.get_by_id = AsyncMock(return_value=sample_cohort)

            await admin_update_status(
                mock_db, 10, admin, AdmissionStatus.APPROVED, verified_by="Reviewer"
            )

            kwargs = mock_repo.compare_and_swap_status.call_args.kwargs
            assert kwargs["expected_status"] == ApplicationStatus.SUBMITTED
            assert kwargs["expected_version"] == 2
            assert kwargs["new_status"] == ApplicationStatus.APPROVED
            assert kwargs["admission_status"] == AdmissionStatus.APPROVED
            assert kwargs["date_of_approval"] is not None
            assert kwargs["verified_by"] == "Reviewer"
            assert "remarks" not in kwargs

            event = mock_dispatch.call_args.args[0]
            params = mock_dispatch.call_args.kwargs
            assert event == NotificationEvent.APPLICATION_APPROVED
            assert params["cohort_name"] == "March 2026"
            assert params["applicant_name"] == "Ada Obi"

    @pytest.mark.asyncio
    async def test_decline_also_stamps_date(
        self, mock_db, admin, submitted_application, sample_owner
    ):
        submitted_application.remarks = "Insufficient experience"

        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=submitted_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            await admin_update_status(
                mock_db, 10, admin, AdmissionStatus.DECLINED, remarks="Insufficient experience"
            )

            kwargs = mock_repo.compare_and_swap_status.call_args.kwargs
            assert kwargs["new_status"] == ApplicationStatus.DECLINED
            assert kwargs["date_of_approval"] is not None
            assert mock_dispatch.call_args.args[0] == NotificationEvent.APPLICATION_DECLINED
            assert mock_dispatch.call_args.kwargs["remarks"] == "Insufficient experience"

    @pytest.mark.asyncio
    async def test_pending_moves_to_under_review(
        self, mock_db, admin, submitted_application, sample_owner
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=submitted_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)

            await admin_update_status(mock_db, 10, admin, AdmissionStatus.PENDING)

            kwargs = mock_repo.compare_and_swap_status.call_args.kwargs
            assert kwargs["new_status"] == ApplicationStatus.UNDER_REVIEW
            assert mock_dispatch.call_args.args[0] == NotificationEvent.APPLICATION_UNDER_REVIEW

    @pytest.mark.asyncio
    async def test_approved_without_cohort_uses_defaults(
        self, mock_db, admin, submitted_application, sample_owner
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.cohort_repository") as mock_cohorts,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=submitted_application)
            mock_users.get_by_id = AsyncMock(return_value=sample_owner)
            mock_cohorts.get_by_id = AsyncMock(return_value=None)

            await admin_update_status(mock_db, 10, admin, AdmissionStatus.APPROVED)

            assert mock_dispatch.call_args.kwargs["cohort_name"] == "Upcoming Cohort"
            assert mock_dispatch.call_args.kwargs["start_date"] is None

    @pytest.mark.asyncio
    async def test_missing_owner_skips_notification(self, mock_db, admin, submitted_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=submitted_application)
            mock_users.get_by_id = AsyncMock(return_value=None)

            await admin_update_status(mock_db, 10, admin, AdmissionStatus.DECLINED)

            mock_dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_draft_cannot_be_decided(self, mock_db, admin, sample_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.compare_and_swap_status = AsyncMock()

            with pytest.raises(InvalidStateError):
                await admin_update_status(mock_db, 10, admin, AdmissionStatus.APPROVED)

            mock_repo.compare_and_swap_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, mock_db, applicant):
        with pytest.raises(ForbiddenError):
            await admin_update_status(mock_db, 10, applicant, AdmissionStatus.APPROVED)

    @pytest.mark.asyncio
    async def test_concurrent_change_is_invalid_state(self, mock_db, admin, submitted_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.dispatch_notification") as mock_dispatch,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.compare_and_swap_status = AsyncMock(return_value=None)

            with pytest.raises(InvalidStateError):
                await admin_update_status(mock_db, 10, admin, AdmissionStatus.APPROVED)

            mock_dispatch.assert_not_called()


class TestAdminRefreshFee:
    """Tests for admin_refresh_fee."""

    @pytest.mark.asyncio
    async def test_refresh_writes_current_fee(self, mock_db, admin, sample_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.resolve_fee",
                new=AsyncMock(return_value=FeeQuote(Decimal("120000.00"), "NGN")),
            ),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock(return_value=sample_application)

            await admin_refresh_fee(mock_db, 10, admin)

            mock_repo.update_fields.assert_called_once_with(
                mock_db,
                10,
                expected_version=1,
                unpaid_only=True,
                application_fee=Decimal("120000.00"),
                fee_currency="NGN",
            )

    @pytest.mark.asyncio
    async def test_refresh_racing_payment_is_rejected(self, mock_db, admin, sample_application):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.resolve_fee",
                new=AsyncMock(return_value=FeeQuote(Decimal("120000.00"), "NGN")),
            ),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock(return_value=None)

            with pytest.raises(InvalidStateError):
                await admin_refresh_fee(mock_db, 10, admin)

    @pytest.mark.asyncio
    async def test_paid_application_rejected(self, mock_db, admin, sample_application):
        sample_application.payment_status = PaymentStatus.COMPLETED

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.update_fields = AsyncMock()

            with pytest.raises(InvalidStateError):
                await admin_refresh_fee(mock_db, 10, admin)

            mock_repo.update_fields.assert_not_called()


class TestChildRows:
    """Tests for child collection add/list."""

    @pytest.mark.asyncio
    async def test_owner_adds_referee_to_draft(self, mock_db, applicant, sample_application):
        data = RefereeCreate(
            referee_name="Dr. Bello",
            position_organization="Director, CBN",
            email="bello@example.com",
            phone_number="+2348000000000",
        )

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application)
            mock_repo.add_child = AsyncMock(side_effect=lambda db, row: row)

            row = await add_child_row(mock_db, 10, applicant, ChildCollection.REFEREES, data)

            assert isinstance(row, Referee)
            assert row.application_id == 10
            assert row.referee_name == "Dr. Bello"

    @pytest.mark.asyncio
    async def test_cannot_add_after_submit(self, mock_db, applicant, submitted_application):
        data = RefereeCreate(
            referee_name="Dr. Bello",
            position_organization="Director, CBN",
            email="bello@example.com",
            phone_number="+2348000000000",
        )

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)

            with pytest.raises(InvalidStateError):
                await add_child_row(mock_db, 10, applicant, ChildCollection.REFEREES, data)

    @pytest.mark.asyncio
    async def test_admin_lists_children(self, mock_db, admin, submitted_application):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=submitted_application)
            mock_repo.list_children = AsyncMock(return_value=[])

            rows = await list_child_rows(
                mock_db, 10, admin, ChildCollection.ACADEMIC_QUALIFICATIONS
            )

            assert rows == []
            mock_repo.list_children.assert_called_once_with(mock_db, AcademicQualification, 10)
