from __future__ import annotations

from pathlib import Path

import click
from alembic import command
from alembic.config import Config as AlembicConfig
from flask import Flask


PROJECT_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"


def to_sqlalchemy_url(db_target: str) -> str:
    """Turn a ``DB_PATH`` value (URL or SQLite file path) into a SQLAlchemy URL."""
    target = (db_target or "").strip()
    if not target:
        raise RuntimeError("DB_PATH is not set; cannot run migrations.")
    if "://" not in target:
        return f"sqlite:///{Path(target).expanduser().resolve().as_posix()}"
    # Heroku-style URLs; SQLAlchemy only accepts the postgresql scheme.
    if target.startswith("postgres://"):
        return "postgresql://" + target[len("postgres://") :]
    return target


def alembic_config_for(db_target: str) -> AlembicConfig:
    if not ALEMBIC_INI.exists():
        raise RuntimeError(f"alembic.ini not found at {PROJECT_ROOT}.")
    database_url = to_sqlalchemy_url(db_target)
    alembic_cfg = AlembicConfig(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", MIGRATIONS_DIR.as_posix())
    alembic_cfg.attributes["database_url"] = database_url
    return alembic_cfg


def register_db_cli(app: Flask) -> None:
    def _config() -> AlembicConfig:
        return alembic_config_for(app.config["DB_PATH"])

    @app.cli.group("db")
    def db_group() -> None:
        """Users/orders schema migrations."""

    @db_group.command("upgrade")
    @click.argument("revision", required=False, default="head")
    def db_upgrade(revision: str) -> None:
        command.upgrade(_config(), revision)
        click.echo(f"Schema upgraded to {revision}.")

    @db_group.command("downgrade")
    @click.argument("revision", required=False, default="-1")
    def db_downgrade(revision: str) -> None:
        command.downgrade(_config(), revision)
        click.echo(f"Schema downgraded to {revision}.")

    @db_group.command("current")
    def db_current() -> None:
        command.current(_config(), verbose=True)

    @db_group.command("history")
    def db_history() -> None:
        command.history(_config())
