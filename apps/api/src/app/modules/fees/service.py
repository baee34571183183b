"""
Fee Resolver

Resolves the fee an applicant must pay for a cohort. Absence of an active
fee configuration is a hard error for every caller.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ServiceError
from app.modules.cohorts import repository as cohort_repository
from app.modules.fees import repository
from app.modules.fees.models import DEFAULT_CURRENCY, FeeConfiguration

logger = logging.getLogger(__name__)


class FeeNotConfiguredError(ServiceError):
    """Raised when a cohort has no active fee configuration."""

    def __init__(self, cohort_id: int):
        self.cohort_id = cohort_id
        super().__init__(
            message=f"Application fee is not configured for cohort {cohort_id}.",
            error_code="FEE_NOT_CONFIGURED",
            status_code=422,
        )


@dataclass(frozen=True)
class FeeQuote:
    amount: Decimal
    currency: str


async def get_fee_configuration(db: AsyncSession, cohort_id: int) -> FeeConfiguration | None:
    """Return the active fee configuration for a cohort, if any."""
    return await repository.get_active_for_cohort(db, cohort_id)


async def resolve_fee(db: AsyncSession, cohort_id: int) -> FeeQuote:
    """
    Resolve the current fee for a cohort.

    Raises:
        FeeNotConfiguredError: If no active fee configuration exists
    """
    fee = await repository.get_active_for_cohort(db, cohort_id)

    if fee is None:
        logger.warning(f"No active fee configuration for cohort {cohort_id}")
        raise FeeNotConfiguredError(cohort_id)

    return FeeQuote(amount=Decimal(fee.amount), currency=fee.currency)


async def set_fee_configuration(
    db: AsyncSession,
    *,
    cohort_id: int,
    amount: Decimal,
    currency: str = DEFAULT_CURRENCY,
    description: str | None = None,
    is_active: bool = True,
) -> FeeConfiguration:
    """
    Record a new fee configuration for a cohort (admin only).

    A new row is always inserted. Fees already snapshotted onto
    applications are not affected.

    Raises:
        NotFoundError: If the cohort does not exist
    """
    cohort = await cohort_repository.get_by_id(db, cohort_id)
    if cohort is None:
        raise NotFoundError("Cohort", cohort_id)

    fee = await repository.create(
        db,
        cohort_id=cohort_id,
        amount=amount,
        currency=currency.upper(),
        description=description,
        is_active=is_active,
    )
    logger.info(f"Fee configuration {fee.id} set for cohort {cohort_id}: {fee.currency} {fee.amount}")
    return fee
