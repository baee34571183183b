"""
Notification Background Jobs

Retries dead-lettered lifecycle emails. Each row is retried independently:
a failure on one row never stops the others. Rows that reach
``MAX_DELIVERY_ATTEMPTS`` are left unresolved for manual follow-up.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.notifications import repository
from app.modules.notifications.dispatcher import NotificationEvent, deliver
from app.modules.notifications.models import NotificationFailure

logger = logging.getLogger(__name__)

MAX_DELIVERY_ATTEMPTS = 5
RETRY_INTERVAL_MINUTES = 15

JOB_ID_RETRY_FAILED = "notifications_retry_failed"


async def _retry_one(failure: NotificationFailure) -> dict[str, Any]:
    event = NotificationEvent(failure.event)

    try:
        delivered = await deliver(event, dict(failure.payload))
        error = "Sender reported delivery failure"
    except Exception as e:
        delivered = False
        error = str(e) or e.__class__.__name__

    async with async_session_maker() as db:
        if delivered:
            await repository.mark_resolved(db, failure.id)
            return {"failure_id": failure.id, "status": "delivered"}

        await repository.record_attempt(db, failure.id, error)

    return {"failure_id": failure.id, "status": "failed", "error": error}


async def retry_failed_notifications() -> dict[str, Any]:
    """
    Resend unresolved dead-lettered notifications.

    Returns:
        Summary with executed_at, the per-row results, and delivered/failed counts
    """
    executed_at = datetime.now(UTC)

    async with async_session_maker() as db:
        failures = await repository.get_retryable(db, max_attempts=MAX_DELIVERY_ATTEMPTS)

    logger.info(f"Retrying {len(failures)} failed notification(s)")

    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "results": [],
        "total_delivered": 0,
        "total_failed": 0,
    }

    for failure in failures:
        try:
            result = await _retry_one(failure)
        except Exception as e:
            logger.error(f"Error retrying notification {failure.id}: {e}", exc_info=True)
            result = {"failure_id": failure.id, "status": "error", "error": str(e)}

        results["results"].append(result)
        if result["status"] == "delivered":
            results["total_delivered"] += 1
        else:
            results["total_failed"] += 1

    logger.info(
        f"Notification retry job completed. "
        f"Delivered: {results['total_delivered']}, Failed: {results['total_failed']}"
    )
    return results


def register_notification_jobs() -> None:
    register_job(
        job_id=JOB_ID_RETRY_FAILED,
        func=retry_failed_notifications,
        trigger=IntervalTrigger(minutes=RETRY_INTERVAL_MINUTES),
    )
