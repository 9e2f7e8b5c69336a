"""Engine, session and health helpers for the catalogue database.

PostgreSQL runs on asyncpg behind a queue pool. SQLite (aiosqlite) is used
for local runs and tests, without pooling and with foreign keys enforced.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from typing import Annotated, Any, NamedTuple, TypedDict

from fastapi import Depends, Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, QueuePool

from core.config import Settings, get_settings
from core.logger import get_logger

logger = get_logger(__name__)

CONNECTIVITY_TIMEOUT_SECONDS = 30


class Base(DeclarativeBase):
    pass


class PoolStatus(NamedTuple):
    """Point-in-time counters of a queue pool."""

    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class HealthCheckResult(TypedDict):
    database: bool
    pool: PoolStatus | None


def _enforce_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores REFERENCES clauses unless the pragma is on per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn, connection_record) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _warn_on_pool_overflow(engine: AsyncEngine) -> None:
    pool = engine.sync_engine.pool
    if not isinstance(pool, QueuePool):
        return

    @event.listens_for(pool, "checkout")
    def _on_checkout(dbapi_conn, connection_record, connection_proxy) -> None:
        if pool.overflow() > 0:
            logger.warning("db.pool.overflow", **get_pool_status(engine)._asdict())


def _engine_options(settings: Settings) -> dict[str, Any]:
    if settings.is_sqlite:
        # One file handle per connection, nothing worth pooling
        return {"echo": settings.db_echo, "poolclass": NullPool}
    return {
        "echo": settings.db_echo,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_pool_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
    }


def create_engine() -> AsyncEngine:
    """Build the engine described by the current settings."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, **_engine_options(settings))

    if settings.is_sqlite:
        _enforce_sqlite_foreign_keys(engine)
    else:
        _warn_on_pool_overflow(engine)
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession]:
    """One session per request, closed when the request ends.

    Repositories commit their own writes, so nothing is committed here.
    Anything still pending when the route raises is rolled back.
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            try:
                await session.rollback()
            except Exception as rollback_err:
                logger.warning("db.rollback.failed", error=str(rollback_err))
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def check_db_connection(engine: AsyncEngine) -> None:
    """Round-trip ``SELECT 1``; raises if the database does not answer in time."""
    async with asyncio.timeout(CONNECTIVITY_TIMEOUT_SECONDS), engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_db(engine: AsyncEngine) -> None:
    """Startup gate: fail fast when the database is unreachable."""
    await check_db_connection(engine)
    logger.info("db.connectivity.verified", dialect=engine.dialect.name)


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing catalogue tables straight from the models."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db.tables.created", tables=sorted(Base.metadata.tables))


async def dispose_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("db.engine.disposed")


def get_pool_status(engine: AsyncEngine) -> PoolStatus | None:
    """Queue pool counters, or None for pools that do not keep connections."""
    pool = engine.sync_engine.pool
    if not isinstance(pool, QueuePool):
        return None
    return PoolStatus(pool.size(), pool.checkedout(), pool.overflow(), pool.checkedin())


async def comprehensive_health_check(engine: AsyncEngine) -> HealthCheckResult:
    """Connectivity plus pool counters. Never raises."""
    try:
        await check_db_connection(engine)
        reachable = True
    except Exception:
        logger.warning("db.health_check.failed", exc_info=True)
        reachable = False

    return {"database": reachable, "pool": get_pool_status(engine)}
