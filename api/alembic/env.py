"""Alembic environment for the catalogue schema.

Migrations run over a blocking driver (psycopg2 or sqlite3) derived from
DATABASE_URL.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import Connection, create_engine, text

# Make the api/ modules importable when alembic is run from the api/ directory
sys.path.insert(0, str(Path(__file__).parent.parent))

import models  # noqa: F401  (registers tables on Base.metadata)
from alembic import context
from core.config import get_settings
from core.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

# Arbitrary key shared by every process that migrates this database
MIGRATION_LOCK_KEY = 518273641
MIGRATION_LOCK_TIMEOUT_SECONDS = 120
MIGRATION_LOCK_POLL_SECONDS = 2

_BLOCKING_DRIVERS = {"+asyncpg": "+psycopg2", "+aiosqlite": ""}


def sync_database_url(url: str) -> str:
    """Swap the async driver in ``url`` for its blocking counterpart."""
    for async_driver, blocking_driver in _BLOCKING_DRIVERS.items():
        url = url.replace(async_driver, blocking_driver, 1)
    return url


@contextmanager
def migration_lock(connection: Connection) -> Iterator[None]:
    """Hold a PostgreSQL advisory lock so only one replica migrates at a time.

    SQLite has no concurrent migrators, so the lock is skipped there.
    """
    if connection.dialect.name != "postgresql":
        yield
        return

    params = {"key": MIGRATION_LOCK_KEY}
    deadline = time.monotonic() + MIGRATION_LOCK_TIMEOUT_SECONDS
    while not connection.execute(
        text("SELECT pg_try_advisory_lock(:key)"), params
    ).scalar():
        if time.monotonic() >= deadline:
            raise RuntimeError(
                f"Migration lock {MIGRATION_LOCK_KEY} still held after "
                f"{MIGRATION_LOCK_TIMEOUT_SECONDS}s"
            )
        logger.debug("Waiting for migration lock")
        time.sleep(MIGRATION_LOCK_POLL_SECONDS)

    # End the implicit transaction so Alembic opens its own
    connection.commit()
    logger.info("Acquired migration lock")
    try:
        yield
    finally:
        connection.execute(text("SELECT pg_advisory_unlock(:key)"), params)
        logger.info("Released migration lock")


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    context.configure(
        url=sync_database_url(get_settings().database_url),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(sync_database_url(get_settings().database_url))

    with engine.connect() as connection, migration_lock(connection):
        # Batch mode lets SQLite emulate ALTER TABLE
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
