"""Database configuration and connection management."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class StorageUnavailableError(RuntimeError):
    """The step store cannot be opened or written."""


class Database:
    """Owns the engine and session factory for one step store.

    Use as ``async with Database(url) as db:`` or call ``open()``/``close()``
    explicitly (the FastAPI lifespan does the latter). Opening creates the
    tables, so a store that cannot be reached fails here rather than on the
    first sensor event.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo  # True for SQL query logging
        self.engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    async def open(self) -> "Database":
        if self.engine is not None:
            return self

        engine_kwargs = {}
        if ":memory:" in self.url:
            # A private in-memory database exists per connection, so pin one
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        engine = create_async_engine(self.url, echo=self.echo, future=True, **engine_kwargs)
        try:
            await init_db(engine)
        except OperationalError as exc:
            await engine.dispose()
            raise StorageUnavailableError(f"Cannot open step database {self.url}") from exc

        self.engine = engine
        self._session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Using database %s", self.url)
        return self

    async def close(self) -> None:
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self._session_maker = None
        logger.info("Database closed")

    async def __aenter__(self) -> "Database":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session bound to this store."""
        if self._session_maker is None:
            raise StorageUnavailableError("Database is not open")
        async with self._session_maker() as session:
            yield session


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Get database session for dependency injection."""
    async with request.app.state.db.session() as session:
        yield session


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    # DayRecord registers itself on Base when imported
    from pedometer import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
