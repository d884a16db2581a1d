"""Alembic environment for EventDesk.

The URL comes from Settings (DATABASE_URL, already rewritten to an async
driver); alembic.ini's sqlalchemy.url only applies when the env var is unset.
Importing eventdesk.models registers every table on Base.metadata.
"""

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

import eventdesk.models  # noqa: F401
from eventdesk.config import get_settings
from eventdesk.db.base import Base

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

if os.environ.get("DATABASE_URL"):
    alembic_cfg.set_main_option("sqlalchemy.url", get_settings().database_url)

target_metadata = Base.metadata
# SQLite needs table rebuilds for ALTER COLUMN
render_as_batch = alembic_cfg.get_main_option("sqlalchemy.url", "").startswith("sqlite")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=render_as_batch,
        **kwargs,
    )


def migrate_offline() -> None:
    _configure(
        url=alembic_cfg.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate_with(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    engine = async_engine_from_config(
        alembic_cfg.get_section(alembic_cfg.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_with)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    asyncio.run(migrate_online())
