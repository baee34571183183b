"""
User Repository

Database operations for user accounts.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create a new user.

        Emails are stored lower-cased so lookups are case-insensitive.
        """
        user = User(
            name=name,
            email=email.lower(),
            password_hash=password_hash,
            role=role,
        )

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        return await UserRepository.get_by_email(db, email) is not None

    @staticmethod
    async def set_role(db: AsyncSession, user: User, role: UserRole) -> User:
        user.role = role
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def touch_last_signed_in(db: AsyncSession, user: User) -> None:
        """Record a successful sign-in."""
        user.last_signed_in_at = datetime.now(UTC)
        await db.commit()
