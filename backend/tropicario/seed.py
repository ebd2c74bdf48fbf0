"""
Create the schema and the administrator account.

Run with ``python -m tropicario.seed``; existing data is left untouched.
"""

import asyncio

from loguru import logger
from sqlalchemy import select

from tropicario.core.config import Settings, get_settings
from tropicario.core.database import Database
from tropicario.core.log import setup_logging
from tropicario.core.security import hash_password
from tropicario.models import User, UserRole


async def ensure_admin(db: Database, settings: Settings) -> User:
    """Return the configured admin, creating it on first run."""
    async with db.session() as session:
        result = await session.execute(
            select(User).where(User.email == settings.admin_email.lower())
        )
        admin = result.scalar_one_or_none()
        if admin:
            logger.info(f"Admin already exists: {admin.username}")
            return admin

        admin = User(
            username=settings.admin_username,
            email=settings.admin_email.lower(),
            hashed_password=hash_password(settings.admin_password, settings),
            role=UserRole.ADMIN,
            is_verified=True,
        )
        session.add(admin)
        await session.commit()
        logger.info(f"Admin created: {admin.username}")
        return admin


async def main() -> None:
    settings = get_settings()
    setup_logging(settings)

    db = Database.from_settings(settings)
    try:
        await db.create_all()
        await ensure_admin(db, settings)
    finally:
        await db.dispose()


if __name__ == "__main__":
    asyncio.run(main())
