"""
Cohort Repository

Read access to cohorts and tracks, plus the inserts used by startup seeding.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Cohort, CohortStatus, Track


async def get_by_id(db: AsyncSession, cohort_id: int) -> Cohort | None:
    return await db.get(Cohort, cohort_id)


async def list_cohorts(db: AsyncSession, status: CohortStatus | None = None) -> list[Cohort]:
    """
    List cohorts, newest first.

    Rows sharing a (name, year) are collapsed to the most recently inserted one.
    """
    query = select(Cohort).order_by(Cohort.id.desc())
    if status is not None:
        query = query.where(Cohort.status == status)

    result = await db.execute(query)

    seen: set[tuple[str, int]] = set()
    cohorts = []
    for cohort in result.scalars().all():
        key = (cohort.name, cohort.year)
        if key in seen:
            continue
        seen.add(key)
        cohorts.append(cohort)
    return cohorts


async def get_by_name_and_year(db: AsyncSession, name: str, year: int) -> Cohort | None:
    result = await db.execute(
        select(Cohort).where(Cohort.name == name, Cohort.year == year).limit(1)
    )
    return result.scalar_one_or_none()


async def create(db: AsyncSession, cohort: Cohort) -> Cohort:
    db.add(cohort)
    await db.commit()
    await db.refresh(cohort)
    return cohort


async def list_tracks(db: AsyncSession) -> list[Track]:
    result = await db.execute(select(Track).order_by(Track.code))
    return list(result.scalars().all())


async def get_track_by_code(db: AsyncSession, code: str) -> Track | None:
    result = await db.execute(select(Track).where(Track.code == code))
    return result.scalar_one_or_none()


async def create_track(db: AsyncSession, track: Track) -> Track:
    db.add(track)
    await db.commit()
    await db.refresh(track)
    return track
