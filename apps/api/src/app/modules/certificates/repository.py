"""
Certificate Repository
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Certificate, CertificateStatus


async def create(db: AsyncSession, certificate: Certificate) -> Certificate:
    db.add(certificate)
    await db.commit()
    await db.refresh(certificate)
    return certificate


async def list_for_user(db: AsyncSession, user_id: int) -> list[Certificate]:
    result = await db.execute(
        select(Certificate)
        .where(Certificate.user_id == user_id)
        .order_by(Certificate.issued_date.desc())
    )
    return list(result.scalars().all())


async def list_for_application(db: AsyncSession, application_id: int) -> list[Certificate]:
    result = await db.execute(
        select(Certificate)
        .where(Certificate.application_id == application_id)
        .order_by(Certificate.issued_date.desc())
    )
    return list(result.scalars().all())


async def get_active_for_track(
    db: AsyncSession, application_id: int, track_code: str
) -> Certificate | None:
    result = await db.execute(
        select(Certificate).where(
            Certificate.application_id == application_id,
            Certificate.track_code == track_code,
            Certificate.status != CertificateStatus.REVOKED,
        )
    )
    return result.scalars().first()
