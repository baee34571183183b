"""
Notification Dispatch

Lifecycle emails are sent from background asyncio tasks so delivery never
blocks or fails the request that triggered them. A delivery that raises or
reports failure is logged and written to the ``notification_failures``
dead-letter table, where the retry job picks it up.

Usage:
    dispatch_notification(
        NotificationEvent.APPLICATION_SUBMITTED,
        to_email=application.email,
        applicant_name=application.full_name,
        application_number=application.application_number,
    )
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from app.core.database import async_session_maker
from app.core.email import (
    send_application_approved,
    send_application_declined,
    send_application_submitted,
    send_application_under_review,
    send_payment_confirmation,
)
from app.modules.notifications import repository

logger = logging.getLogger(__name__)


class NotificationEvent(str, enum.Enum):
    """Lifecycle events that send an email."""

    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_DECLINED = "application_declined"
    APPLICATION_UNDER_REVIEW = "application_under_review"
    PAYMENT_CONFIRMED = "payment_confirmed"


NotificationSender = Callable[..., Awaitable[bool]]

NOTIFICATION_SENDERS: dict[NotificationEvent, NotificationSender] = {
    NotificationEvent.APPLICATION_SUBMITTED: send_application_submitted,
    NotificationEvent.APPLICATION_APPROVED: send_application_approved,
    NotificationEvent.APPLICATION_DECLINED: send_application_declined,
    NotificationEvent.APPLICATION_UNDER_REVIEW: send_application_under_review,
    NotificationEvent.PAYMENT_CONFIRMED: send_payment_confirmation,
}

# Strong references so running tasks are not garbage collected
_pending_tasks: set[asyncio.Task] = set()


def _json_safe(params: dict[str, Any]) -> dict[str, Any]:
    safe = {}
    for key, value in params.items():
        if isinstance(value, Decimal):
            safe[key] = str(value)
        elif isinstance(value, datetime | date):
            safe[key] = value.isoformat()
        else:
            safe[key] = value
    return safe


async def deliver(event: NotificationEvent, params: dict[str, Any]) -> bool:
    """
    Send one notification through its registered sender.

    Returns:
        The sender's result. Exceptions from the sender propagate.
    """
    sender = NOTIFICATION_SENDERS[event]
    return await sender(**params)


async def _record_failure(event: NotificationEvent, params: dict[str, Any], error: str) -> None:
    try:
        async with async_session_maker() as db:
            await repository.create_failure(
                db,
                event=event.value,
                recipient=params.get("to_email"),
                payload=_json_safe(params),
                error=error,
            )
    except Exception as e:
        logger.error(f"Could not dead-letter {event.value} notification: {e}")


async def _deliver_or_dead_letter(event: NotificationEvent, params: dict[str, Any]) -> bool:
    try:
        delivered = await deliver(event, params)
        error = "Sender reported delivery failure"
    except Exception as e:
        delivered = False
        error = str(e) or e.__class__.__name__

    if delivered:
        logger.info(f"Delivered {event.value} notification to {params.get('to_email')}")
        return True

    logger.error(f"Failed to deliver {event.value} notification to {params.get('to_email')}: {error}")
    await _record_failure(event, params, error)
    return False


def dispatch_notification(event: NotificationEvent, **params: Any) -> asyncio.Task:
    """
    Schedule a notification on the running event loop and return immediately.

    Args:
        event: Which lifecycle email to send
        **params: Keyword arguments for the event's sender

    Returns:
        The background task (callers normally ignore it)
    """
    task = asyncio.create_task(
        _deliver_or_dead_letter(event, params),
        name=f"notification:{event.value}",
    )
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)
    return task


async def drain_pending_notifications(timeout: float = 10.0) -> None:
    """Wait for in-flight notifications during shutdown."""
    if not _pending_tasks:
        return

    logger.info(f"Waiting for {len(_pending_tasks)} pending notification(s)")
    _done, still_pending = await asyncio.wait(set(_pending_tasks), timeout=timeout)
    if still_pending:
        logger.warning(f"{len(still_pending)} notification(s) still pending at shutdown")
