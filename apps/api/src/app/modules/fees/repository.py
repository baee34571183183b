"""
Fee Configuration Repository
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DEFAULT_CURRENCY, FeeConfiguration


async def get_active_for_cohort(db: AsyncSession, cohort_id: int) -> FeeConfiguration | None:
    """
    Get the active fee configuration for a cohort.

    Uniqueness of the active row is not enforced by the schema; the most
    recently created active row wins.
    """
    result = await db.execute(
        select(FeeConfiguration)
        .where(
            FeeConfiguration.cohort_id == cohort_id,
            FeeConfiguration.is_active.is_(True),
        )
        .order_by(FeeConfiguration.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_for_cohort(db: AsyncSession, cohort_id: int) -> list[FeeConfiguration]:
    """Fee history for a cohort, newest first."""
    result = await db.execute(
        select(FeeConfiguration)
        .where(FeeConfiguration.cohort_id == cohort_id)
        .order_by(FeeConfiguration.id.desc())
    )
    return list(result.scalars().all())


async def create(
    db: AsyncSession,
    *,
    cohort_id: int,
    amount: Decimal,
    currency: str = DEFAULT_CURRENCY,
    description: str | None = None,
    is_active: bool = True,
) -> FeeConfiguration:
    fee = FeeConfiguration(
        cohort_id=cohort_id,
        amount=amount,
        currency=currency,
        description=description,
        is_active=is_active,
    )
    db.add(fee)
    await db.commit()
    await db.refresh(fee)
    return fee
