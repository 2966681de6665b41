"""Database connection and session management."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from helix.core.config import settings

from .models import Base


def to_async_url(url: str) -> str:
    """Rewrite a plain database URL to use an async driver."""
    # Convert postgres:// to postgresql+asyncpg://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def use_immediate_transactions(engine: AsyncEngine):
    """
    Start every SQLite transaction with BEGIN IMMEDIATE.

    Each session then takes the write lock up front and later sessions wait
    on the busy timeout, instead of failing when two deferred transactions
    try to upgrade their read locks at the same time.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseSessionManager:
    """
    Manages database connections and sessions.

    Uses SQLAlchemy async engine for non-blocking database operations.
    Each call to session() is its own unit of work and commits on exit.
    """

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    def init(self, database_url: str | None = None, **engine_options: Any):
        """
        Initialize the database engine and session factory.

        Args:
            database_url: Optional override for the database URL
            **engine_options: Extra create_async_engine options
        """
        url = to_async_url(database_url or settings.database_url)

        if url.startswith("sqlite"):
            # Writers from concurrent sessions wait on the file lock up to timeout
            options: dict = {"connect_args": {"check_same_thread": False, "timeout": 30}}
            if ":memory:" in url:
                # One shared connection keeps the in-memory database alive;
                # concurrent sessions interleave on it, so use a file for pipelines
                options["poolclass"] = StaticPool
        else:
            options = {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
                "pool_pre_ping": True,
            }
        options.update(engine_options)

        engine = create_async_engine(url, echo=settings.debug, **options)
        if url.startswith("sqlite") and ":memory:" not in url:
            use_immediate_transactions(engine)
        self.bind(engine)

    def bind(self, engine: AsyncEngine):
        """Use an existing engine."""
        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self):
        """Create every table that does not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        """Close the database engine."""
        if self._engine:
            await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope around operations.

        Yields:
            An async database session
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


db_manager = DatabaseSessionManager()
