"""Turn raw extracted values into comparable ``FieldValue`` objects.

Responsibilities of this stage:
- strip currency/percent decoration from strings
- parse numeric text into ``Number``
- map empty input to ``Missing``
- reject values that cannot take part in a comparison (``NormalizationSkip``)
"""

from __future__ import annotations

import logging
import math
import re

from fieldwise.domain.errors import NormalizationSkip
from fieldwise.domain.model import MISSING, FieldValue, Missing, Number, Text

log = logging.getLogger(__name__)

_DECORATION = re.compile(r"[,$%\s]")
_NEGATIVE_PARENS = re.compile(r"^\((.*)\)$")


def normalize_value(raw: object) -> FieldValue:
    """Normalize one raw value.

    Raises:
        NormalizationSkip: for booleans, non-finite numbers and containers.
    """

    match raw:
        case None:
            return MISSING
        case Number() | Text() | Missing():
            return _normalize_field_value(raw)
        case bool():
            raise NormalizationSkip(f"boolean value {raw!r} is not comparable")
        case int() | float():
            return _finite(float(raw))
        case str():
            return _normalize_text(raw)
        case _:
            raise NormalizationSkip(f"unsupported value type {type(raw).__name__}")


def try_normalize(raw: object, *, field_name: str) -> FieldValue | None:
    """Normalize ``raw``; log and return ``None`` when it has to be skipped."""

    try:
        return normalize_value(raw)
    except NormalizationSkip as exc:
        log.debug("Skipping %s: %s", field_name, exc)
        return None


def _normalize_field_value(value: FieldValue) -> FieldValue:
    match value:
        case Text(text):
            # text values coming from storage may still carry decoration
            return _normalize_text(text)
        case Number(number):
            return _finite(number)
        case Missing():
            return MISSING


def _normalize_text(raw: str) -> FieldValue:
    stripped = raw.strip()
    if not stripped:
        return MISSING
    candidate = _DECORATION.sub("", stripped)
    negative = _NEGATIVE_PARENS.match(candidate)
    if negative:
        candidate = "-" + negative.group(1)
    try:
        number = float(candidate)
    except ValueError:
        return Text(stripped)
    if not math.isfinite(number):
        # "nan"/"inf" spelled out in a document are text, not numbers
        return Text(stripped)
    return Number(number)


def _finite(number: float) -> Number:
    if not math.isfinite(number):
        raise NormalizationSkip(f"non-finite number {number!r}")
    return Number(number)
