"""Alembic environment: migrations run on the configured async engine.

SQLite cannot alter tables in place, so its migrations are rendered and
run in batch mode.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from pydantic import ValidationError
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

import staync.db.models  # noqa: F401  registers every table on Base.metadata
from staync.config import get_settings
from staync.db.base import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    """``db.url`` from the app config; ``sqlalchemy.url`` in alembic.ini when settings are incomplete."""
    try:
        return get_settings().db.url
    except ValidationError:
        return config.get_main_option("sqlalchemy.url", "")


def _run(**options) -> None:
    context.configure(target_metadata=Base.metadata, compare_type=True, **options)
    with context.begin_transaction():
        context.run_migrations()


def _run_on(connection: Connection) -> None:
    _run(connection=connection, render_as_batch=connection.dialect.name == "sqlite")


async def _run_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_on)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    url = database_url()
    _run(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )
else:
    asyncio.run(_run_online())
