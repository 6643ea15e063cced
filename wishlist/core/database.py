"""Async database handle with an explicit open/close lifecycle."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from wishlist.core.config import Settings

logger = logging.getLogger(__name__)


class DatabaseNotOpenError(RuntimeError):
    """Raised when a session is requested from a closed Database."""


class Database:
    """Owns the SQLAlchemy engine and session factory for the process.

    Created once by the application lifespan, opened before the first request
    and closed on shutdown. Request handlers receive sessions through
    ``get_async_session`` rather than reaching for a module global.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, echo=settings.database_echo)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseNotOpenError("Database is not open")
        return self._engine

    async def open(self) -> None:
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(self.url, echo=self.echo, future=True)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info("Database opened (%s)", self._engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        """Dispose the engine. Safe to call more than once."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session bound to this database."""
        if self._session_factory is None:
            raise DatabaseNotOpenError("Database is not open")
        async with self._session_factory() as session:
            yield session


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the application's Database."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's Database.

    Streaming handlers use it to open their own session, since the response
    body outlives the request's dependency scope.
    """
    return request.app.state.database
