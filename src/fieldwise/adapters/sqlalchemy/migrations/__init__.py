"""Schema migrations for the clarification store, driven programmatically."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from fieldwise.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

SCRIPTS_DIR: Final[Path] = Path(__file__).resolve().parent

log = logging.getLogger(__name__)


def alembic_config() -> Config:
    """An ini-less Alembic configuration rooted at this package."""

    config = Config()
    config.set_main_option("script_location", str(SCRIPTS_DIR))
    config.set_main_option("version_locations", str(SCRIPTS_DIR / "versions"))
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the schema to the newest revision.

    With ``engine`` the upgrade shares one of its connections and commits with it;
    otherwise Alembic connects to ``database_uri`` (or the configured database) itself.
    """

    config = alembic_config()
    if engine is None:
        config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
        command.upgrade(config, "head")
        return

    log.debug("Upgrading schema on %s", engine.url.render_as_string(hide_password=True))
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
