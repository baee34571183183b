"""
Fellowship Applications Repository

Database operations for applications and their child collections.
Status transitions and field edits are written with a compare-and-swap
UPDATE guarded by the expected version (and status, where it matters), so
two concurrent writers can never both succeed from the same starting state.
"""

from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AcademicQualification,
    Application,
    ApplicationStatus,
    EmploymentRecord,
    PaymentStatus,
    ProfessionalQualification,
    Referee,
)

ChildModel = type[AcademicQualification | ProfessionalQualification | EmploymentRecord | Referee]

SORTABLE_COLUMNS = {
    "created_at": Application.created_at,
    "submitted_at": Application.submitted_at,
    "full_name": Application.full_name,
    "application_number": Application.application_number,
}


async def create(
    db: AsyncSession,
    application: Application,
    children: list[Any] | None = None,
) -> Application:
    """
    Persist a new application and its child rows in one transaction.
    """
    db.add(application)
    await db.flush()

    for child in children or []:
        child.application_id = application.id
        db.add(child)

    await db.commit()
    await db.refresh(application)
    return application


async def get_by_id(db: AsyncSession, id: int) -> Application | None:
    return await db.get(Application, id)


async def get_by_number(db: AsyncSession, application_number: str) -> Application | None:
    result = await db.execute(
        select(Application).where(Application.application_number == application_number)
    )
    return result.scalar_one_or_none()


async def list_for_user(db: AsyncSession, user_id: int) -> list[Application]:
    result = await db.execute(
        select(Application)
        .where(Application.user_id == user_id)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def update_fields(
    db: AsyncSession,
    id: int,
    *,
    expected_version: int,
    expected_status: ApplicationStatus | None = None,
    unpaid_only: bool = False,
    **fields,
) -> Application | None:
    """
    Write plain fields (no status change) only if the application is
    still at ``expected_version``, optionally also still in
    ``expected_status`` and not yet paid.

    Returns:
        The refreshed application, or None if another writer got there first
    """
    conditions = [Application.id == id, Application.version == expected_version]
    if expected_status is not None:
        conditions.append(Application.status == expected_status)
    if unpaid_only:
        conditions.append(Application.payment_status != PaymentStatus.COMPLETED)

    result = await db.execute(
        update(Application)
        .where(*conditions)
        .values(version=Application.version + 1, **fields)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        await db.rollback()
        return None

    await db.commit()
    return await db.get(Application, id, populate_existing=True)


async def compare_and_swap_status(
    db: AsyncSession,
    id: int,
    *,
    expected_status: ApplicationStatus,
    expected_version: int,
    new_status: ApplicationStatus,
    **fields,
) -> Application | None:
    """
    Move an application to ``new_status`` only if it is still in
    ``expected_status`` at ``expected_version``.

    Args:
        db: Database session
        id: Application id
        expected_status: Status the caller read
        expected_version: Version the caller read
        new_status: Status to write
        **fields: Other columns written in the same UPDATE

    Returns:
        The refreshed application, or None if another writer got there first
    """
    result = await db.execute(
        update(Application)
        .where(
            Application.id == id,
            Application.status == expected_status,
            Application.version == expected_version,
        )
        .values(status=new_status, version=Application.version + 1, **fields)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        await db.rollback()
        return None

    await db.commit()
    return await db.get(Application, id, populate_existing=True)


async def mark_payment_completed(db: AsyncSession, id: int, reference: str) -> None:
    await db.execute(
        update(Application)
        .where(Application.id == id)
        .values(
            payment_status=PaymentStatus.COMPLETED,
            payment_reference=reference,
            version=Application.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def get_applications_for_admin(
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
) -> tuple[list[Application], int]:
    """
    Filtered, sorted, paginated application list.

    Returns:
        (applications on this page, total matching count)
    """
    conditions = []
    if status is not None:
        conditions.append(Application.status == status)
    if cohort_id is not None:
        conditions.append(Application.cohort_id == cohort_id)
    if payment_status is not None:
        conditions.append(Application.payment_status == payment_status)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Application.full_name.ilike(pattern),
                Application.email.ilike(pattern),
                Application.application_number.ilike(pattern),
            )
        )

    count_result = await db.execute(
        select(func.count()).select_from(Application).where(*conditions)
    )
    total = count_result.scalar_one()

    column = SORTABLE_COLUMNS.get(sort_by, Application.created_at)
    order = column.asc() if sort_order == "asc" else column.desc()

    result = await db.execute(
        select(Application).where(*conditions).order_by(order).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


# ============================================
# Child collections
# ============================================


async def add_child(db: AsyncSession, child: Any) -> Any:
    db.add(child)
    await db.commit()
    await db.refresh(child)
    return child


async def list_children(db: AsyncSession, model: ChildModel, application_id: int) -> list[Any]:
    result = await db.execute(
        select(model).where(model.application_id == application_id).order_by(model.id)
    )
    return list(result.scalars().all())
