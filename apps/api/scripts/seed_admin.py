"""
Seed Admin User

Creates an admin account for the fellowship portal, or promotes an
existing account to admin.

Usage:
    cd apps/api
    python scripts/seed_admin.py --email admin@example.org --name "Portal Admin"

The password is read from ADMIN_PASSWORD or prompted for.
"""

import argparse
import asyncio
import getpass
import os
import sys

from app.core.database import async_session_maker, close_db
from app.core.security import hash_password
from app.modules.users.models import UserRole
from app.modules.users.repository import UserRepository

MIN_PASSWORD_LENGTH = 8


def _read_password() -> str:
    password = os.environ.get("ADMIN_PASSWORD")
    if password:
        return password

    password = getpass.getpass("Admin password: ")
    if password != getpass.getpass("Confirm password: "):
        sys.exit("Passwords do not match.")
    return password


async def seed_admin(email: str, name: str) -> None:
    """Create the admin user, or promote the existing account."""
    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)

        if existing_user:
            if existing_user.role == UserRole.ADMIN:
                print(f"Admin already exists: {existing_user.email}")
                print(f"  ID: {existing_user.id}")
                return

            await UserRepository.set_role(db, existing_user, UserRole.ADMIN)
            print(f"Promoted {existing_user.email} to admin")
            print(f"  ID: {existing_user.id}")
            return

        password = _read_password()
        if len(password) < MIN_PASSWORD_LENGTH:
            sys.exit(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        admin_user = await UserRepository.create(
            db,
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.ADMIN,
        )

        print("Admin created successfully!")
        print(f"  Email: {admin_user.email}")
        print(f"  Name: {admin_user.name}")
        print(f"  ID: {admin_user.id}")

    await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote a portal admin.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()

    asyncio.run(seed_admin(args.email, args.name))


if __name__ == "__main__":
    main()
