"""Alembic environment for the substitute finder schema.

``alembic.ini`` puts ``backend/`` on ``sys.path``. The database URL comes from
``DATABASE_URL`` when set, otherwise from the application settings, so
migrations and the running service share one SQLite file by default.
"""
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import subfinder.models  # noqa: F401
from subfinder.core.config import get_settings
from subfinder.db.base import Base
from subfinder.db.session import ensure_database_directory

config = context.config
target_metadata = Base.metadata

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or get_settings().database_url
    ensure_database_directory(url)
    return url


config.set_main_option("sqlalchemy.url", _database_url())


def _configure(**kwargs) -> None:
    # SQLite cannot ALTER most constraints in place; batch mode rebuilds tables.
    context.configure(target_metadata=target_metadata, render_as_batch=True, **kwargs)


def run_migrations_offline() -> None:
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
