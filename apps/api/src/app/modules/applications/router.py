"""
Fellowship Applications Router

Applicant endpoints. Every endpoint requires an authenticated user.

Endpoints:
- POST  /applications                         - Create a draft application
- GET   /applications/mine                    - List the caller's applications
- GET   /applications/{id}                    - Get an application (owner or admin)
- PATCH /applications/{id}                    - Update an application
- POST  /applications/{id}/submit             - Submit a draft
- GET   /applications/{id}/{collection}       - List a child collection
- POST  /applications/{id}/{collection}       - Add a child row (draft only)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.exceptions import ServiceError, to_http_exception
from app.modules.applications import service
from app.modules.applications.schemas import (
    AcademicQualificationCreate,
    AcademicQualificationResponse,
    ApplicationCreate,
    ApplicationCreatedResponse,
    ApplicationResponse,
    ApplicationSummary,
    ApplicationUpdate,
    EmploymentCreate,
    EmploymentResponse,
    ProfessionalQualificationCreate,
    ProfessionalQualificationResponse,
    RefereeCreate,
    RefereeResponse,
)
from app.modules.applications.service import ChildCollection

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise to_http_exception(e) from e


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Unexpected error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


@router.post(
    "",
    response_model=ApplicationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Application",
    responses={
        404: {"description": "Cohort not found"},
        422: {"description": "Validation error or fee not configured for the cohort"},
    },
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationCreatedResponse:
    """
    Create a draft application.

    The cohort's current application fee is snapshotted onto the new
    application. No email is sent until the application is submitted.
    """
    try:
        application = await service.create_application(db, user, data)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("creating application", e) from e

    return ApplicationCreatedResponse(
        id=application.id,
        application_number=application.application_number,
        status=application.status,
        application_fee=application.application_fee,
        fee_currency=application.fee_currency,
    )


@router.get("/mine", response_model=list[ApplicationSummary])
async def list_my_applications(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ApplicationSummary]:
    """List the caller's applications, newest first."""
    applications = await service.list_my_applications(db, user)
    return [ApplicationSummary.model_validate(a) for a in applications]


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, application_id, user)
    except ServiceError as e:
        _handle_service_error(e)

    return ApplicationResponse.model_validate(application)


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: int,
    data: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """
    Update application fields.

    Applicants can edit only while the application is a draft.
    """
    try:
        application = await service.update_application(db, application_id, user, data)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(f"updating application {application_id}", e) from e

    return ApplicationResponse.model_validate(application)


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationResponse,
    summary="Submit Application",
    description="""
Submit a draft application for review.

**Requirements:**
- Caller must own the application
- Application must be a draft
- Statement of purpose must be at least 250 characters
- At least one track, the declaration and the data consent are required

A confirmation email is sent in the background.
""",
    responses={
        403: {"description": "Caller does not own the application"},
        409: {
            "description": "Application already submitted",
            "content": {
                "application/json": {
                    "example": {
                        "error": "INVALID_APPLICATION_STATE",
                        "message": "Application already submitted. Expected state: draft",
                    }
                }
            },
        },
        422: {"description": "Application is incomplete"},
    },
)
async def submit_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.submit_application(db, application_id, user)
    except ServiceError as e:
        logger.warning(f"Submit rejected for application {application_id}: {e.message}")
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(f"submitting application {application_id}", e) from e

    return ApplicationResponse.model_validate(application)


# ============================================
# Child collections
# ============================================


async def _add_child(
    db: AsyncSession,
    application_id: int,
    user: CurrentUser,
    collection: ChildCollection,
    data: BaseModel,
):
    try:
        return await service.add_child_row(db, application_id, user, collection, data)
    except ServiceError as e:
        _handle_service_error(e)


async def _list_children(
    db: AsyncSession,
    application_id: int,
    user: CurrentUser,
    collection: ChildCollection,
):
    try:
        return await service.list_child_rows(db, application_id, user, collection)
    except ServiceError as e:
        _handle_service_error(e)


@router.post(
    "/{application_id}/academic-qualifications",
    response_model=AcademicQualificationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_academic_qualification(
    application_id: int,
    data: AcademicQualificationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _add_child(db, application_id, user, ChildCollection.ACADEMIC_QUALIFICATIONS, data)


@router.get(
    "/{application_id}/academic-qualifications",
    response_model=list[AcademicQualificationResponse],
)
async def list_academic_qualifications(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _list_children(db, application_id, user, ChildCollection.ACADEMIC_QUALIFICATIONS)


@router.post(
    "/{application_id}/professional-qualifications",
    response_model=ProfessionalQualificationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_professional_qualification(
    application_id: int,
    data: ProfessionalQualificationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _add_child(
        db, application_id, user, ChildCollection.PROFESSIONAL_QUALIFICATIONS, data
    )


@router.get(
    "/{application_id}/professional-qualifications",
    response_model=list[ProfessionalQualificationResponse],
)
async def list_professional_qualifications(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _list_children(
        db, application_id, user, ChildCollection.PROFESSIONAL_QUALIFICATIONS
    )


@router.post(
    "/{application_id}/employment-history",
    response_model=EmploymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_employment(
    application_id: int,
    data: EmploymentCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _add_child(db, application_id, user, ChildCollection.EMPLOYMENT_HISTORY, data)


@router.get(
    "/{application_id}/employment-history",
    response_model=list[EmploymentResponse],
)
async def list_employment_history(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _list_children(db, application_id, user, ChildCollection.EMPLOYMENT_HISTORY)


@router.post(
    "/{application_id}/referees",
    response_model=RefereeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_referee(
    application_id: int,
    data: RefereeCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _add_child(db, application_id, user, ChildCollection.REFEREES, data)


@router.get("/{application_id}/referees", response_model=list[RefereeResponse])
async def list_referees(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return await _list_children(db, application_id, user, ChildCollection.REFEREES)
