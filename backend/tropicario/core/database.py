"""
Database engine, session factory and request-scoped sessions.
"""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from fastapi import Request
from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from tropicario.core.config import Settings


class Base(DeclarativeBase):
    """Declarative base for all models."""


def utcnow() -> datetime:
    """Current time as naive UTC, the format every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Database:
    """
    Owns the async engine and the session factory.

    Usage:
        db = Database.from_settings(settings)
        async with db.session() as session:
            ...
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_options)
        self.session_factory = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a database with pool options suited to the configured backend."""
        url = settings.database_url
        options: dict[str, Any] = {"echo": settings.database_echo}

        if url.startswith("sqlite"):
            if ":memory:" in url or url.rstrip("/").endswith(":"):
                options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        else:
            options["pool_size"] = settings.database_pool_size
            options["max_overflow"] = settings.database_max_overflow
            options["pool_pre_ping"] = True

        return cls(url, **options)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        # Register every model on Base.metadata
        import tropicario.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def drop_all(self) -> None:
        import tropicario.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide one session per request.

    The whole request runs in a single transaction: it is committed when the
    handler returns and rolled back when it raises.
    """
    database: Database = request.app.state.db
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
