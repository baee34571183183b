"""
Supporting Document Repository
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import SupportingDocument


async def create(db: AsyncSession, document: SupportingDocument) -> SupportingDocument:
    db.add(document)
    await db.commit()
    await db.refresh(document)
    return document


async def get_by_id(db: AsyncSession, id: int) -> SupportingDocument | None:
    return await db.get(SupportingDocument, id)


async def list_for_application(db: AsyncSession, application_id: int) -> list[SupportingDocument]:
    result = await db.execute(
        select(SupportingDocument)
        .where(SupportingDocument.application_id == application_id)
        .order_by(SupportingDocument.uploaded_at)
    )
    return list(result.scalars().all())


async def delete(db: AsyncSession, document: SupportingDocument) -> None:
    await db.delete(document)
    await db.commit()
