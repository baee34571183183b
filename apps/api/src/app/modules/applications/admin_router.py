"""
Fellowship Applications Admin Router

Review endpoints for admins. All endpoints require a valid JWT with the
admin role.

Endpoints:
- GET  /admin/applications                         - List with filters and pagination
- GET  /admin/applications/{id}                    - Application detail
- PUT  /admin/applications/{id}/status             - Record an admission decision
- POST /admin/applications/{id}/refresh-fee        - Re-snapshot the cohort fee
- GET  /admin/applications/{id}/{collection}       - Child collection views

Decision and fee endpoints are rate limited per admin.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.core.exceptions import ServiceError, to_http_exception
from app.core.rate_limit import enforce_rate_limit
from app.modules.applications import service
from app.modules.applications.models import ApplicationStatus, PaymentStatus
from app.modules.applications.schemas import (
    AcademicQualificationResponse,
    AdminStatusUpdateRequest,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSummary,
    EmploymentResponse,
    ProfessionalQualificationResponse,
    RefereeResponse,
)
from app.modules.applications.service import ChildCollection

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_DECISION = (30, 60)  # 30 decisions per minute
RATE_LIMIT_REFRESH_FEE = (10, 60)  # 10 fee refreshes per minute


async def _check_admin_rate_limit(admin: CurrentUser, action: str, limit: int, window_seconds: int) -> None:
    await enforce_rate_limit(f"admin:{action}:{admin.id}", limit, window_seconds)


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise to_http_exception(e) from e


# ============================================
# Endpoints
# ============================================


@router.get("", response_model=ApplicationListResponse, summary="List Applications")
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    cohort_id: int | None = Query(None, gt=0),
    payment_status: PaymentStatus | None = Query(None),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("created_at", pattern="^(created_at|submitted_at|full_name|application_number)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    """
    List applications for review.

    Filters combine with AND; ``search`` matches name, email or
    application number.
    """
    result = await service.admin_list_applications(
        db,
        status=status_filter,
        cohort_id=cohort_id,
        payment_status=payment_status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )

    return ApplicationListResponse(
        applications=[ApplicationSummary.model_validate(a) for a in result["applications"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application_detail(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, application_id, admin)
    except ServiceError as e:
        _handle_service_error(e)

    return ApplicationResponse.model_validate(application)


@router.put(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Record Admission Decision",
    description="""
Set the admission status of a submitted application.

| admission_status | resulting workflow status |
|---|---|
| approved | approved |
| declined | declined |
| pending  | under_review |

The review date is stamped on every decision. The applicant is emailed
in the background.
""",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Application has not been submitted"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def update_application_status(
    application_id: int,
    data: AdminStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    await _check_admin_rate_limit(admin, "decision", *RATE_LIMIT_DECISION)

    try:
        application = await service.admin_update_status(
            db,
            application_id,
            admin,
            data.admission_status,
            remarks=data.remarks,
            verified_by=data.verified_by,
        )
    except ServiceError as e:
        logger.warning(f"Decision rejected for application {application_id}: {e.message}")
        _handle_service_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating application {application_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        ) from e

    logger.info(
        f"Admin {admin.id} ({admin.email}) set application {application_id} "
        f"admission status to {data.admission_status.value}"
    )
    return ApplicationResponse.model_validate(application)


@router.post("/{application_id}/refresh-fee", response_model=ApplicationResponse)
async def refresh_application_fee(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    """Replace the application's fee snapshot with the cohort's current fee."""
    await _check_admin_rate_limit(admin, "refresh_fee", *RATE_LIMIT_REFRESH_FEE)

    try:
        application = await service.admin_refresh_fee(db, application_id, admin)
    except ServiceError as e:
        _handle_service_error(e)

    return ApplicationResponse.model_validate(application)


@router.get(
    "/{application_id}/academic-qualifications",
    response_model=list[AcademicQualificationResponse],
)
async def view_academic_qualifications(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    try:
        return await service.list_child_rows(
            db, application_id, admin, ChildCollection.ACADEMIC_QUALIFICATIONS
        )
    except ServiceError as e:
        _handle_service_error(e)


@router.get(
    "/{application_id}/professional-qualifications",
    response_model=list[ProfessionalQualificationResponse],
)
async def view_professional_qualifications(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    try:
        return await service.list_child_rows(
            db, application_id, admin, ChildCollection.PROFESSIONAL_QUALIFICATIONS
        )
    except ServiceError as e:
        _handle_service_error(e)


@router.get(
    "/{application_id}/employment-history",
    response_model=list[EmploymentResponse],
)
async def view_employment_history(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    try:
        return await service.list_child_rows(
            db, application_id, admin, ChildCollection.EMPLOYMENT_HISTORY
        )
    except ServiceError as e:
        _handle_service_error(e)


@router.get("/{application_id}/referees", response_model=list[RefereeResponse])
async def view_referees(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
):
    try:
        return await service.list_child_rows(db, application_id, admin, ChildCollection.REFEREES)
    except ServiceError as e:
        _handle_service_error(e)
