"""
Notification Dead-Letter Repository
"""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import NotificationFailure


async def create_failure(
    db: AsyncSession,
    *,
    event: str,
    recipient: str | None,
    payload: dict,
    error: str | None,
) -> NotificationFailure:
    failure = NotificationFailure(
        event=event,
        recipient=recipient,
        payload=payload,
        last_error=error,
        attempts=1,
    )
    db.add(failure)
    await db.commit()
    await db.refresh(failure)
    return failure


async def get_retryable(
    db: AsyncSession,
    max_attempts: int,
    limit: int = 100,
) -> list[NotificationFailure]:
    """Unresolved failures that still have attempts left, oldest first."""
    result = await db.execute(
        select(NotificationFailure)
        .where(
            NotificationFailure.resolved_at.is_(None),
            NotificationFailure.attempts < max_attempts,
        )
        .order_by(NotificationFailure.created_at.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def mark_resolved(db: AsyncSession, failure_id: int) -> None:
    failure = await db.get(NotificationFailure, failure_id)
    if failure is None:
        return
    failure.resolved_at = datetime.now(UTC)
    await db.commit()


async def record_attempt(db: AsyncSession, failure_id: int, error: str) -> None:
    failure = await db.get(NotificationFailure, failure_id)
    if failure is None:
        return
    failure.attempts += 1
    failure.last_error = error
    await db.commit()
