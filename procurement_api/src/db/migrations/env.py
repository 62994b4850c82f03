from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

# `src.*` must be importable when alembic is invoked from the CLI
PROJECT_ROOT = Path(__file__).resolve().parents[3]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.db import models  # noqa: E402,F401
from src.db.base import Base  # noqa: E402
from src.db.config import get_settings, is_sqlite_url, to_async_url  # noqa: E402

config = context.config
settings = get_settings()
target_metadata = Base.metadata

# run_migrations.build_config() sets sqlalchemy.url; a bare alembic.ini may not
DATABASE_URL = config.get_main_option("sqlalchemy.url") or settings.sync_database_url

COMPARE_OPTIONS = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "compare_server_default": True,
    # SQLite cannot ALTER most column properties in place
    "render_as_batch": is_sqlite_url(DATABASE_URL),
}


def run_migrations_offline() -> None:
    """Emit SQL for the migration range without connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(sync_conn) -> None:
    context.configure(connection=sync_conn, **COMPARE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(
        to_async_url(DATABASE_URL), poolclass=pool.NullPool, echo=settings.SQL_ECHO
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
