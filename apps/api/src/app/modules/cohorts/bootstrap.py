"""
Default Reference Data

Seeds the current year's quarterly cohorts, the certification tracks and a
default fee for every cohort that has none. Runs at startup and is safe to
run repeatedly.
"""

import calendar
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.cohorts import repository
from app.modules.cohorts.models import Cohort, CohortStatus, Track
from app.modules.fees import repository as fee_repository

logger = logging.getLogger(__name__)

DEFAULT_COHORT_MONTHS = (3, 6, 9, 12)
DEFAULT_CAPACITY = 100
DEFAULT_FEE_AMOUNT = Decimal("100000.00")
DEFAULT_FEE_CURRENCY = "NGN"

DEFAULT_TRACKS = (
    (
        "FIBAKM",
        "Fellow of the Institute of Business Administration and Knowledge Management",
    ),
    ("FCBA", "Fellow Certified Business Administrator"),
    ("FCKM", "Fellow Certified Knowledge Manager"),
)


def build_default_cohort(year: int, month: int) -> Cohort:
    """
    Build a cohort for ``month`` of ``year``.

    The deadline is the 15th, the programme starts on the 20th and ends on
    the 20th three months later.
    """
    end_month = month + 3
    end_year = year
    if end_month > 12:
        end_month -= 12
        end_year += 1

    return Cohort(
        name=calendar.month_name[month],
        month=month,
        year=year,
        application_deadline=date(year, month, 15),
        start_date=date(year, month, 20),
        end_date=date(end_year, end_month, 20),
        capacity=DEFAULT_CAPACITY,
        status=CohortStatus.OPEN,
    )


async def seed_cohorts(db: AsyncSession, year: int) -> list[Cohort]:
    created = []
    for month in DEFAULT_COHORT_MONTHS:
        name = calendar.month_name[month]
        if await repository.get_by_name_and_year(db, name, year) is not None:
            continue
        created.append(await repository.create(db, build_default_cohort(year, month)))

    if created:
        logger.info(f"Created {len(created)} default cohort(s) for {year}")
    return created


async def seed_tracks(db: AsyncSession) -> int:
    created = 0
    for code, name in DEFAULT_TRACKS:
        if await repository.get_track_by_code(db, code) is not None:
            continue
        await repository.create_track(db, Track(code=code, name=name))
        created += 1
    return created


async def seed_fees(db: AsyncSession) -> int:
    """Give every cohort without an active fee the default fee."""
    created = 0
    for cohort in await repository.list_cohorts(db):
        if await fee_repository.get_active_for_cohort(db, cohort.id) is not None:
            continue
        await fee_repository.create(
            db,
            cohort_id=cohort.id,
            amount=DEFAULT_FEE_AMOUNT,
            currency=DEFAULT_FEE_CURRENCY,
            description="Default application fee for fellowship program",
        )
        created += 1

    if created:
        logger.info(f"Set default fee ({DEFAULT_FEE_CURRENCY} {DEFAULT_FEE_AMOUNT}) for {created} cohort(s)")
    return created


async def initialize_defaults(db: AsyncSession, year: int | None = None) -> dict[str, int]:
    """
    Seed cohorts, tracks and fees.

    Returns:
        Counts of created cohorts, tracks and fees
    """
    year = year or date.today().year

    cohorts = await seed_cohorts(db, year)
    tracks = await seed_tracks(db)
    fees = await seed_fees(db)

    return {"cohorts": len(cohorts), "tracks": tracks, "fees": fees}
