# async relational database handle for the backend api
# wraps the sqlalchemy engine (bounded connection pool) and session factory

import logging
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from autitrack.config import settings
from autitrack.services.tables import Base

logger = logging.getLogger(__name__)


class Database:
    """async connection pool manager.

    one instance per process, created at startup and handed to the app
    through create_app so tests can swap in an in-memory engine.
    """

    def __init__(self, url: Optional[str] = None, **engine_kwargs):
        self.url = url or settings.DATABASE_URL
        self.engine_kwargs = engine_kwargs
        self.engine: Optional[AsyncEngine] = None
        self.sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    def _pool_options(self) -> dict:
        # sqlite drivers manage their own pool
        if self.url.startswith("sqlite"):
            return {}
        return {
            "pool_size": settings.DB_POOL_SIZE,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        }

    async def connect(self, create_tables: Optional[bool] = None):
        """create the engine and, unless disabled, the schema"""
        if self.engine is not None:
            return

        options = {**self._pool_options(), **self.engine_kwargs}
        logger.info(f"Connecting to database: {self.engine_url_for_logs}")
        self.engine = create_async_engine(self.url, echo=False, **options)
        self.sessionmaker = async_sessionmaker(
            self.engine, expire_on_commit=False, class_=AsyncSession,
        )

        if create_tables is None:
            create_tables = settings.DB_CREATE_TABLES
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connection established")

    async def close(self):
        """dispose of the engine and its pool"""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.sessionmaker = None
            logger.info("Database connection closed")

    @property
    def engine_url_for_logs(self) -> str:
        # hide credentials
        if "@" in self.url:
            scheme, _, rest = self.url.partition("://")
            return f"{scheme}://***@{rest.split('@', 1)[1]}"
        return self.url

    def session(self) -> AsyncSession:
        if self.sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self.sessionmaker()


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """one AsyncSession per request, closed when the response is sent"""
    db: Database = request.app.state.db
    async with db.session() as session:
        yield session
