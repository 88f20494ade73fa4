from typing import AsyncIterator
from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from smartpoint.core.config import Settings
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Data-access handle with an explicit lifecycle.

    Built once at process start, stored on ``app.state.database`` and
    disposed at shutdown. Request handlers receive sessions through
    ``get_async_db``; nothing else holds a connection.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    async def create_all(self) -> None:
        """Create tables for every imported model (development and tests only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def create_database(settings: Settings) -> Database:
    """Build the application's Database from settings."""
    if settings.ENVIRONMENT == "test":
        return Database(settings.async_database_url, echo=False, poolclass=NullPool)
    return Database(
        settings.async_database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        echo=settings.DEBUG
    )


# Async dependency for application endpoints
async def get_async_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the application's Database handle."""
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except HTTPException:
            await session.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error: {e}")
            await session.rollback()
            raise
