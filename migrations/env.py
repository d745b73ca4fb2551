from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from orderhub.db_migrations import to_sqlalchemy_url


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Revisions are hand-written SQL shared with orderhub.db; there is no ORM metadata.
target_metadata = None


def _database_url() -> str:
    # Set by `flask db`; the app config wins over the environment.
    from_app = config.attributes.get("database_url")
    if from_app:
        return from_app
    configured = os.environ.get("DATABASE_URL") or os.environ.get("DB_PATH") or config.get_main_option("sqlalchemy.url")
    if not configured:
        raise RuntimeError("No database URL configured for Alembic.")
    return to_sqlalchemy_url(configured)


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool, future=True)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
