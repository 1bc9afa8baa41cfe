"""Alembic environment for the cake ledger.

Online migrations connect through :func:`cakebot.database.engine.create_db_engine`,
so SQLite runs them with the same pragmas the bot uses.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import pool

from alembic import context

load_dotenv()

from cakebot.constants import DEFAULT_DATABASE_URL  # noqa: E402
from cakebot.database.engine import create_db_engine  # noqa: E402
from cakebot.database.models import Base  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def _batch(url: str) -> bool:
    # SQLite can't ALTER constraints in place; batch mode rebuilds tables
    return url.startswith("sqlite")


def migrate_offline() -> None:
    """Print the migration SQL for DATABASE_URL instead of running it."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_batch(DATABASE_URL),
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_online() -> None:
    engine = create_db_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=Base.metadata,
                render_as_batch=_batch(DATABASE_URL),
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
