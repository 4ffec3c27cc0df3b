"""
Alembic Environment Configuration

This file configures Alembic to work with our async SQLModel/SQLAlchemy setup.
It handles:
- Database connection from settings (or a URL passed in by the caller)
- Model imports for autogenerate
- Sync engine creation for SQLite migrations (Alembic uses sync drivers)
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from shorturl.core.setting import settings
from shorturl.db import models  # noqa: F401  import all models so Alembic can detect them
from shorturl.db.sqlite_adapter import get_database_adapter

config = context.config

# Callers running migrations programmatically may pass their own URL
database_url = config.attributes.get("database_url") or settings.DATABASE_URL
adapter = get_database_adapter()
is_sqlite = make_url(database_url).get_backend_name() == adapter.get_dialect_name()

if is_sqlite:
    database_url = adapter.get_sync_database_url(database_url)

config.set_main_option("sqlalchemy.url", database_url)

# Interpret the config file for Python logging, keeping the service's loggers
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without a connection)."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = create_async_engine(database_url, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    if is_sqlite:
        connectable = create_engine(database_url, poolclass=pool.NullPool)

        with connectable.connect() as connection:
            do_run_migrations(connection)

        connectable.dispose()
    else:
        asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
