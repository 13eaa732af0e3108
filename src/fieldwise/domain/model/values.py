"""Value objects for extracted data.

``FieldValue`` is a closed union; callers should ``match`` on it rather than probing
types at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

type FieldName = str
type Confidence = float
type BenchmarkUnit = Literal["currency", "percent", "ratio", "count", "hours"]


@dataclass(frozen=True, slots=True)
class Number:
    value: float

    def __str__(self) -> str:
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)


@dataclass(frozen=True, slots=True)
class Text:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Missing:
    def __str__(self) -> str:
        return ""


type FieldValue = Number | Text | Missing

MISSING = Missing()


def as_float(value: FieldValue) -> float | None:
    match value:
        case Number(number):
            return number
        case Text() | Missing():
            return None


def render(value: FieldValue) -> str | None:
    """Human-readable form used in reasons and CLI output; ``None`` for missing."""

    match value:
        case Missing():
            return None
        case Number() | Text():
            return str(value)


@dataclass(frozen=True, slots=True, kw_only=True)
class BenchmarkRange:
    """Expected numeric range for one field of one facility category."""

    min: float
    median: float
    max: float
    unit: BenchmarkUnit | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.min <= self.median <= self.max:
            raise ValueError("BenchmarkRange requires min <= median <= max")

    def variance(self, value: float) -> float:
        """Signed fraction outside the nearest bound; 0 inside the range."""

        if value < self.min:
            return _relative(value, self.min)
        if value > self.max:
            return _relative(value, self.max)
        return 0.0

    def scaled(self, factor: float) -> BenchmarkRange:
        return BenchmarkRange(
            min=self.min * factor,
            median=self.median * factor,
            max=self.max * factor,
            unit=self.unit,
            description=self.description,
        )


def _relative(value: float, bound: float) -> float:
    # zero bounds (e.g. agency labor share) fall back to the absolute distance
    if bound == 0:
        return value
    return (value - bound) / abs(bound)
