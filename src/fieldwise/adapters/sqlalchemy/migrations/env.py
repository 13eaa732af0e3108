"""Alembic environment for the clarification store.

Runs against a connection handed in through ``config.attributes`` when
:func:`fieldwise.adapters.sqlalchemy.migrations.upgrade_head` is given an engine,
otherwise against ``sqlalchemy.url`` or the configured database.
"""

from __future__ import annotations

from typing import Any

from alembic import context
from sqlalchemy import create_engine, pool

from fieldwise.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from fieldwise.config import get_database_config

start_mappers()

_COMPARE_OPTIONS: dict[str, Any] = {
    "target_metadata": mapper_registry.metadata,
    # sqlite needs table rebuilds for most ALTERs
    "render_as_batch": True,
    "compare_type": True,
    "compare_server_default": True,
}


def _migrate(**options: Any) -> None:
    context.configure(**options, **_COMPARE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def _database_url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


if context.is_offline_mode():
    _migrate(url=_database_url(), literal_binds=True)
elif (borrowed := context.config.attributes.get("connection")) is not None:
    _migrate(connection=borrowed)
else:
    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection=connection)
    finally:
        engine.dispose()
