"""
Fee Configuration Routers

- GET  /fees/cohorts/{cohort_id}        - Current fee for a cohort (public)
- GET  /admin/fees/cohorts/{cohort_id}  - Fee history for a cohort (admin)
- POST /admin/fees                      - Set a cohort's fee (admin)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.core.exceptions import ServiceError, to_http_exception
from app.modules.fees import repository, service
from app.modules.fees.schemas import FeeConfigurationCreate, FeeConfigurationResponse

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.get("/cohorts/{cohort_id}", response_model=FeeConfigurationResponse)
async def get_cohort_fee(
    cohort_id: int,
    db: AsyncSession = Depends(get_db),
) -> FeeConfigurationResponse:
    """Get the active application fee for a cohort."""
    fee = await service.get_fee_configuration(db, cohort_id)
    if fee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "FEE_NOT_CONFIGURED",
                "message": f"Application fee is not configured for cohort {cohort_id}.",
            },
        )
    return FeeConfigurationResponse.model_validate(fee)


@admin_router.get("/cohorts/{cohort_id}", response_model=list[FeeConfigurationResponse])
async def get_cohort_fee_history(
    cohort_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[FeeConfigurationResponse]:
    """List every fee configuration recorded for a cohort."""
    fees = await repository.list_for_cohort(db, cohort_id)
    return [FeeConfigurationResponse.model_validate(fee) for fee in fees]


@admin_router.post(
    "",
    response_model=FeeConfigurationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def set_cohort_fee(
    data: FeeConfigurationCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> FeeConfigurationResponse:
    """
    Set a cohort's application fee.

    Creates a new configuration row; applications that already exist keep
    the fee they were created with.
    """
    try:
        fee = await service.set_fee_configuration(
            db,
            cohort_id=data.cohort_id,
            amount=data.amount,
            currency=data.currency,
            description=data.description,
            is_active=data.is_active,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} set fee for cohort {data.cohort_id}")
    return FeeConfigurationResponse.model_validate(fee)
