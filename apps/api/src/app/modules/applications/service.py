"""
Fellowship Applications Service Layer

Business logic for the application lifecycle:

1. Creation:
   - Validate the form (pydantic) and the target cohort
   - Resolve and snapshot the cohort fee (hard error if not configured)
   - Persist the draft plus any complete child rows in one transaction

2. Applicant operations:
   - Read (owner or admin), update (owner while draft, or admin)
   - Submit: draft -> submitted via compare-and-swap, then notify

3. Admin review:
   - Decision: sets admission status, workflow status and review fields,
     then sends the decision-specific email
   - Explicit fee refresh for unpaid applications

Notifications are dispatched as background tasks and never affect the
outcome of the operation that triggered them.
"""

import enum
import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.modules.applications import repository
from app.modules.applications.lifecycle import (
    InvalidStatusTransitionError,
    decision_field_updates,
    generate_application_number,
    missing_submission_fields,
    validate_transition,
    workflow_status_for,
)
from app.modules.applications.models import (
    AcademicQualification,
    AdmissionStatus,
    Application,
    ApplicationStatus,
    EmploymentRecord,
    PaymentStatus,
    ProfessionalQualification,
    Referee,
)
from app.modules.applications.schemas import ApplicationCreate, ApplicationUpdate
from app.modules.cohorts import repository as cohort_repository
from app.modules.fees.service import resolve_fee
from app.modules.notifications.dispatcher import NotificationEvent, dispatch_notification
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class ApplicationNotFoundError(NotFoundError):
    def __init__(self, application_id: int | None = None):
        super().__init__("Application", application_id)


class CohortNotFoundError(NotFoundError):
    def __init__(self, cohort_id: int):
        super().__init__("Cohort", cohort_id)


class ChildCollection(str, enum.Enum):
    """Child collections owned by an application."""

    ACADEMIC_QUALIFICATIONS = "academic-qualifications"
    PROFESSIONAL_QUALIFICATIONS = "professional-qualifications"
    EMPLOYMENT_HISTORY = "employment-history"
    REFEREES = "referees"


# collection -> (model, fields that must be non-empty)
_CHILD_MODELS: dict[ChildCollection, tuple[type, tuple[str, ...]]] = {
    ChildCollection.ACADEMIC_QUALIFICATIONS: (
        AcademicQualification,
        ("qualification", "discipline", "institution", "year_obtained"),
    ),
    ChildCollection.PROFESSIONAL_QUALIFICATIONS: (
        ProfessionalQualification,
        ("professional_body", "designation", "year_admitted", "membership_status"),
    ),
    ChildCollection.EMPLOYMENT_HISTORY: (
        EmploymentRecord,
        ("organization", "position_held", "period_from", "period_to"),
    ),
    ChildCollection.REFEREES: (
        Referee,
        ("referee_name", "position_organization", "email", "phone_number"),
    ),
}

_CREATE_PAYLOAD_COLLECTIONS = {
    "academic_qualifications": ChildCollection.ACADEMIC_QUALIFICATIONS,
    "professional_qualifications": ChildCollection.PROFESSIONAL_QUALIFICATIONS,
    "employment_history": ChildCollection.EMPLOYMENT_HISTORY,
    "referees": ChildCollection.REFEREES,
}


# ============================================
# Access helpers
# ============================================


def _is_owner(application: Application, caller: CurrentUser) -> bool:
    return application.user_id == caller.id


def ensure_can_read(application: Application, caller: CurrentUser) -> None:
    """
    Raises:
        ForbiddenError: Unless the caller owns the application or is an admin
    """
    if not (_is_owner(application, caller) or caller.is_admin):
        logger.warning(f"User {caller.id} denied access to application {application.id}")
        raise ForbiddenError("You do not have access to this application.")


def ensure_owner(application: Application, caller: CurrentUser) -> None:
    """
    Raises:
        ForbiddenError: Unless the caller owns the application
    """
    if not _is_owner(application, caller):
        logger.warning(f"User {caller.id} is not the owner of application {application.id}")
        raise ForbiddenError("Only the applicant can perform this action.")


async def _load(db: AsyncSession, application_id: int) -> Application:
    application = await repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    return application


def _is_complete(row: dict[str, Any], required: tuple[str, ...]) -> bool:
    for field in required:
        value = row.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return False
    return True


def build_child_rows(data: ApplicationCreate) -> list[Any]:
    """
    Model instances for the child rows in a create payload.

    Rows missing a required sub-field are dropped silently.
    """
    children = []
    for attribute, collection in _CREATE_PAYLOAD_COLLECTIONS.items():
        model, required = _CHILD_MODELS[collection]
        for row in getattr(data, attribute):
            values = row.model_dump()
            if not _is_complete(values, required):
                logger.debug(f"Dropping incomplete {collection.value} row")
                continue
            children.append(model(**values))
    return children


# ============================================
# Applicant operations
# ============================================


async def create_application(
    db: AsyncSession,
    caller: CurrentUser,
    data: ApplicationCreate,
) -> Application:
    """
    Create a draft application for the caller.

    The cohort's current fee is snapshotted onto the application and is
    not recomputed later. No notification is sent.

    Raises:
        CohortNotFoundError: If the cohort does not exist
        FeeNotConfiguredError: If the cohort has no active fee (nothing is written)
    """
    cohort = await cohort_repository.get_by_id(db, data.cohort_id)
    if cohort is None:
        raise CohortNotFoundError(data.cohort_id)

    fee = await resolve_fee(db, data.cohort_id)

    fields = data.model_dump(exclude=set(_CREATE_PAYLOAD_COLLECTIONS))
    application = Application(
        **fields,
        application_number=generate_application_number(),
        user_id=caller.id,
        application_fee=fee.amount,
        fee_currency=fee.currency,
        status=ApplicationStatus.DRAFT,
        admission_status=AdmissionStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        version=1,
    )
    children = build_child_rows(data)

    application = await repository.create(db, application, children)
    logger.info(
        f"Created application {application.application_number} (id={application.id}) "
        f"for user {caller.id} in cohort {data.cohort_id} with {len(children)} child row(s)"
    )
    return application


async def get_application(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
) -> Application:
    """
    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        ForbiddenError: If the caller is neither owner nor admin
    """
    application = await _load(db, application_id)
    ensure_can_read(application, caller)
    return application


async def list_my_applications(db: AsyncSession, caller: CurrentUser) -> list[Application]:
    return await repository.list_for_user(db, caller.id)


async def update_application(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
    data: ApplicationUpdate,
) -> Application:
    """
    Update application fields.

    Owners may edit only while the application is a draft; admins may edit
    at any status. Workflow, review and payment fields cannot be changed here.
    The write is guarded by the version read here (and draft status for
    owners), so an edit racing a submit fails instead of landing.

    Raises:
        ApplicationNotFoundError, ForbiddenError, InvalidStateError
    """
    application = await _load(db, application_id)

    expected_status = None
    if not caller.is_admin:
        ensure_owner(application, caller)
        if application.status != ApplicationStatus.DRAFT:
            raise InvalidStateError(
                "Only draft applications can be edited.",
                expected_state=ApplicationStatus.DRAFT.value,
            )
        expected_status = ApplicationStatus.DRAFT

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        return application

    updated = await repository.update_fields(
        db,
        application.id,
        expected_version=application.version,
        expected_status=expected_status,
        **changes,
    )
    if updated is None:
        logger.warning(f"Concurrent change detected while editing application {application_id}")
        raise InvalidStateError(
            "Application was modified by another request. Reload and try again.",
            expected_state=expected_status.value if expected_status else None,
        )

    logger.info(f"Updated application {application_id} fields: {sorted(changes)}")
    return updated


async def submit_application(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
) -> Application:
    """
    Submit a draft application.

    The transition is written with compare-and-swap; if a concurrent
    request changed the application first, this call fails with
    InvalidStateError and nothing is written.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        ForbiddenError: If the caller is not the owner
        InvalidStateError: If the application is not a draft
        ValidationError: If required fields are missing
    """
    application = await _load(db, application_id)
    ensure_owner(application, caller)

    if application.status != ApplicationStatus.DRAFT:
        raise InvalidStateError(
            "Application already submitted.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    missing = missing_submission_fields(application)
    if missing:
        raise ValidationError(f"Application is incomplete. Missing or invalid: {', '.join(missing)}")

    submitted = await repository.compare_and_swap_status(
        db,
        application.id,
        expected_status=ApplicationStatus.DRAFT,
        expected_version=application.version,
        new_status=ApplicationStatus.SUBMITTED,
        submitted_at=datetime.now(UTC),
    )
    if submitted is None:
        logger.warning(f"Concurrent submit detected for application {application_id}")
        raise InvalidStateError(
            "Application already submitted.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    logger.info(f"Application {submitted.application_number} submitted by user {caller.id}")

    dispatch_notification(
        NotificationEvent.APPLICATION_SUBMITTED,
        to_email=caller.email or submitted.email,
        applicant_name=submitted.full_name,
        application_number=submitted.application_number,
    )
    return submitted


# ============================================
# Child collections
# ============================================


async def add_child_row(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
    collection: ChildCollection,
    data: BaseModel,
) -> Any:
    """
    Add one row to a child collection (owner only, draft only).

    Raises:
        ApplicationNotFoundError, ForbiddenError, InvalidStateError
    """
    application = await _load(db, application_id)
    ensure_owner(application, caller)

    if application.status != ApplicationStatus.DRAFT:
        raise InvalidStateError(
            "Only draft applications can be edited.",
            expected_state=ApplicationStatus.DRAFT.value,
        )

    model, _required = _CHILD_MODELS[collection]
    row = await repository.add_child(db, model(application_id=application.id, **data.model_dump()))
    logger.info(f"Added {collection.value} row {row.id} to application {application_id}")
    return row


async def list_child_rows(
    db: AsyncSession,
    application_id: int,
    caller: CurrentUser,
    collection: ChildCollection,
) -> list[Any]:
    """
    Raises:
        ApplicationNotFoundError, ForbiddenError
    """
    application = await _load(db, application_id)
    ensure_can_read(application, caller)

    model, _required = _CHILD_MODELS[collection]
    return await repository.list_children(db, model, application.id)


# ============================================
# Admin operations
# ============================================


async def admin_list_applications(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    cohort_id: int | None = None,
    payment_status: PaymentStatus | None = None,
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> dict:
    """
    Paginated application list for the admin review surface.

    Returns:
        Dict with applications, total, skip and limit
    """
    limit = min(max(1, limit), 100)
    skip = max(0, skip)

    applications, total = await repository.get_applications_for_admin(
        db,
        status=status,
        cohort_id=cohort_id,
        payment_status=payment_status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )
    logger.info(f"Admin list: {total} matching, returning {len(applications)}")

    return {
        "applications": applications,
        "total": total,
        "skip": skip,
        "limit": limit,
    }


async def _notify_decision(db: AsyncSession, application: Application, decision: AdmissionStatus) -> None:
    owner = await UserRepository.get_by_id(db, application.user_id)
    if owner is None or not owner.email:
        logger.info(
            f"Skipping decision notification for application {application.id}: owner email unavailable"
        )
        return

    common = {
        "to_email": owner.email,
        "applicant_name": owner.name or "Applicant",
        "application_number": application.application_number,
    }

    match decision:
        case AdmissionStatus.APPROVED:
            cohort = await cohort_repository.get_by_id(db, application.cohort_id)
            dispatch_notification(
                NotificationEvent.APPLICATION_APPROVED,
                **common,
                cohort_name=cohort.name if cohort else "Upcoming Cohort",
                start_date=cohort.start_date if cohort else None,
            )
        case AdmissionStatus.DECLINED:
            dispatch_notification(
                NotificationEvent.APPLICATION_DECLINED,
                **common,
                remarks=application.remarks,
            )
        case AdmissionStatus.PENDING:
            dispatch_notification(NotificationEvent.APPLICATION_UNDER_REVIEW, **common)


async def admin_update_status(
    db: AsyncSession,
    application_id: int,
    admin: CurrentUser,
    decision: AdmissionStatus,
    remarks: str | None = None,
    verified_by: str | None = None,
) -> Application:
    """
    Record an admin decision.

    Sets the admission status, the matching workflow status
    (pending -> under_review) and the review fields, then emails the owner.
    Re-applying the same decision is allowed.

    Raises:
        ForbiddenError: If the caller is not an admin
        ApplicationNotFoundError: If the application doesn't exist
        InvalidStateError: If the application has not been submitted, or it
            changed while the decision was being written
    """
    if not admin.is_admin:
        raise ForbiddenError("Admin access is required.")

    application = await _load(db, application_id)
    new_status = workflow_status_for(decision)

    try:
        validate_transition(application.status, new_status)
    except InvalidStatusTransitionError as e:
        logger.warning(f"Rejected admin decision on application {application_id}: {e}")
        raise InvalidStateError(
            "Only submitted applications can be reviewed.",
            expected_state=ApplicationStatus.SUBMITTED.value,
        ) from e

    updates = decision_field_updates(
        decision,
        datetime.now(UTC),
        remarks=remarks,
        verified_by=verified_by,
    )
    updates.pop("status")

    updated = await repository.compare_and_swap_status(
        db,
        application.id,
        expected_status=application.status,
        expected_version=application.version,
        new_status=new_status,
        **updates,
    )
    if updated is None:
        raise InvalidStateError("Application was modified concurrently. Please retry.")

    logger.info(
        f"Admin {admin.id} set application {updated.application_number} to "
        f"{decision.value} (status={new_status.value})"
    )

    await _notify_decision(db, updated, decision)
    return updated


async def admin_refresh_fee(
    db: AsyncSession,
    application_id: int,
    admin: CurrentUser,
) -> Application:
    """
    Re-snapshot the cohort's current fee onto an unpaid application.

    This is the only path that changes an application's fee after creation.

    Raises:
        ForbiddenError, ApplicationNotFoundError, FeeNotConfiguredError,
        InvalidStateError: If the fee has already been paid
    """
    if not admin.is_admin:
        raise ForbiddenError("Admin access is required.")

    application = await _load(db, application_id)

    if application.payment_status == PaymentStatus.COMPLETED:
        raise InvalidStateError("The application fee has already been paid.")

    fee = await resolve_fee(db, application.cohort_id)
    previous = application.application_fee

    refreshed = await repository.update_fields(
        db,
        application.id,
        expected_version=application.version,
        unpaid_only=True,
        application_fee=fee.amount,
        fee_currency=fee.currency,
    )
    if refreshed is None:
        raise InvalidStateError("Application was paid or modified while refreshing the fee.")

    logger.info(
        f"Admin {admin.id} refreshed fee on application {application_id}: "
        f"{previous} -> {fee.amount} {fee.currency}"
    )
    return refreshed
