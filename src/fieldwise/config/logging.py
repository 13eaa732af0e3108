"""Logging setup for the fieldwise CLI and services."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import ValidationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# libraries whose INFO output drowns the reconciliation log
_NOISY_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration")


def resolve_log_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``FIELDWISE_LOG_LEVEL``) into a numeric logging level."""

    if level is None:
        level = optional_env_var("FIELDWISE_LOG_LEVEL") or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValidationError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger with a terse CLI format.

    Migration and SQL chatter is kept at WARNING unless DEBUG is requested.
    Pass ``force=True`` to reconfigure during tests.
    """

    numeric = resolve_log_level(level)
    logging.basicConfig(level=numeric, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(numeric if numeric <= logging.DEBUG else logging.WARNING)
