"""
Payment Repository
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.applications.models import PaymentStatus

from .models import Payment


async def create(db: AsyncSession, payment: Payment) -> Payment:
    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    return payment


async def get_by_reference(db: AsyncSession, reference: str) -> Payment | None:
    result = await db.execute(select(Payment).where(Payment.reference == reference))
    return result.scalar_one_or_none()


async def list_for_application(db: AsyncSession, application_id: int) -> list[Payment]:
    result = await db.execute(
        select(Payment)
        .where(Payment.application_id == application_id)
        .order_by(Payment.created_at.desc())
    )
    return list(result.scalars().all())


async def mark_completed(
    db: AsyncSession,
    reference: str,
    *,
    paid_at: datetime,
    payment_method: str | None = None,
) -> bool:
    """
    Move a payment to completed unless it already is.

    The UPDATE is conditional on the stored status, so exactly one of any
    concurrent verifications wins. Nothing is committed here; the caller
    commits together with the application update.

    Returns:
        True if this call completed the payment, False if it was already completed
    """
    result = await db.execute(
        update(Payment)
        .where(Payment.reference == reference, Payment.status != PaymentStatus.COMPLETED)
        .values(status=PaymentStatus.COMPLETED, paid_at=paid_at, payment_method=payment_method)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def mark_failed(db: AsyncSession, payment: Payment) -> Payment:
    payment.status = PaymentStatus.FAILED
    await db.commit()
    await db.refresh(payment)
    return payment
