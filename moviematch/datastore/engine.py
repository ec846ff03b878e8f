"""
Database engine and session management.

Uses the SQLAlchemy async engine. A single Datastore is created at startup
and shared by handle; every unit of work opens its own short session.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from moviematch.datastore.models import Base
from moviematch.settings import Settings, global_settings


class Datastore:
    """Owns the async engine and hands out transactional sessions."""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_async_engine(database_url, echo=echo, future=True)
        self._session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Datastore":
        settings = settings or global_settings
        return cls(settings.database_url, echo=settings.database_echo)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def init(self) -> None:
        """Create all tables"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Datastore initialized ({self.dialect})")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session committed on success, rolled back on error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        await self.engine.dispose()
        logger.debug("Datastore connections closed")
