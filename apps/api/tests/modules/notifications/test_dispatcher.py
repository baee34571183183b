"""
Unit tests for background notification dispatch and dead-lettering.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from app.modules.notifications.dispatcher import (
    NotificationEvent,
    _json_safe,
    dispatch_notification,
    drain_pending_notifications,
)

DISPATCHER = "app.modules.notifications.dispatcher"

SUBMITTED_PARAMS = {
    "to_email": "ada@example.com",
    "applicant_name": "Ada Obi",
    "application_number": "APP-123456-ABCDEF",
}


class TestDispatchNotification:
    """Tests for dispatch_notification."""

    @pytest.mark.asyncio
    async def test_delivered_notification_is_not_dead_lettered(self):
        with (
            patch(f"{DISPATCHER}.deliver", new=AsyncMock(return_value=True)) as mock_deliver,
            patch(f"{DISPATCHER}._record_failure", new=AsyncMock()) as mock_record,
        ):
            task = dispatch_notification(NotificationEvent.APPLICATION_SUBMITTED, **SUBMITTED_PARAMS)
            assert await task is True

            mock_deliver.assert_called_once_with(NotificationEvent.APPLICATION_SUBMITTED, SUBMITTED_PARAMS)
            mock_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_sender_failure_is_dead_lettered(self):
        with (
            patch(f"{DISPATCHER}.deliver", new=AsyncMock(return_value=False)),
            patch(f"{DISPATCHER}._record_failure", new=AsyncMock()) as mock_record,
        ):
            task = dispatch_notification(NotificationEvent.APPLICATION_SUBMITTED, **SUBMITTED_PARAMS)
            assert await task is False

            event, params, error = mock_record.call_args.args
            assert event == NotificationEvent.APPLICATION_SUBMITTED
            assert params == SUBMITTED_PARAMS
            assert error == "Sender reported delivery failure"

    @pytest.mark.asyncio
    async def test_sender_exception_never_escapes(self):
        with (
            patch(f"{DISPATCHER}.deliver", new=AsyncMock(side_effect=RuntimeError("smtp down"))),
            patch(f"{DISPATCHER}._record_failure", new=AsyncMock()) as mock_record,
        ):
            task = dispatch_notification(NotificationEvent.PAYMENT_CONFIRMED, to_email="ada@example.com")
            assert await task is False

            assert mock_record.call_args.args[2] == "smtp down"

    @pytest.mark.asyncio
    async def test_drain_waits_for_pending_tasks(self):
        with (
            patch(f"{DISPATCHER}.deliver", new=AsyncMock(return_value=True)),
            patch(f"{DISPATCHER}._record_failure", new=AsyncMock()),
        ):
            task = dispatch_notification(NotificationEvent.APPLICATION_UNDER_REVIEW, **SUBMITTED_PARAMS)
            await drain_pending_notifications(timeout=1)

            assert task.done()


class TestJsonSafe:
    def test_decimals_and_dates_are_serialised(self):
        safe = _json_safe({"amount": Decimal("100000.00"), "start_date": date(2026, 3, 20), "n": 1})

        assert safe == {"amount": "100000.00", "start_date": "2026-03-20", "n": 1}
