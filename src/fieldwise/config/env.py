"""Reading ``FIELDWISE_*`` and friends out of the process environment.

Blank values count as unset everywhere, so an exported-but-empty variable never
overrides a default.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable


def optional_env_var(name: str) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or None


def _parsed_env[T](name: str, parse: Callable[[str], T], kind: str) -> T | None:
    raw = optional_env_var(name)
    if raw is None:
        return None
    try:
        return parse(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be {kind}, got {raw!r}") from exc


def optional_float_env(name: str) -> float | None:
    return _parsed_env(name, float, "a number")


def optional_int_env(name: str) -> int | None:
    return _parsed_env(name, int, "an integer")


def optional_list_env(name: str) -> tuple[str, ...] | None:
    """Comma separated names; empty items are dropped."""

    raw = optional_env_var(name)
    if raw is None:
        return None
    return tuple(item for item in (part.strip() for part in raw.split(",")) if item)
