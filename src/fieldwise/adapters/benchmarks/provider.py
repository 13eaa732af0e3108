"""Static-table benchmark provider and range helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from fieldwise.domain.model import FacilityType

from .tables import BENCHMARKS_BY_FACILITY, REGIONAL_ADJUSTMENTS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fieldwise.domain.model import BenchmarkRange

type RangePosition = Literal["below", "within", "above"]
type CheckSeverity = Literal["ok", "warning", "critical"]

WARNING_VARIANCE = 0.20
AT_MEDIAN_PERCENT = 5


@dataclass(slots=True)
class StaticBenchmarkProvider:
    """Serve the built-in tables, optionally adjusted for the facility's state."""

    tables: Mapping[FacilityType, Mapping[str, BenchmarkRange]] = field(
        default_factory=lambda: BENCHMARKS_BY_FACILITY
    )
    adjustments: Mapping[str, Mapping[str, float]] = field(
        default_factory=lambda: REGIONAL_ADJUSTMENTS
    )

    def ranges_for(
        self,
        facility_type: FacilityType,
        *,
        state: str | None = None,
    ) -> dict[str, BenchmarkRange]:
        base = self.tables.get(FacilityType(facility_type), self.tables[FacilityType.SNF])
        factors = self.adjustments.get(state.upper(), {}) if state else {}
        return {
            field_name: (
                benchmark.scaled(factors[field_name]) if field_name in factors else benchmark
            )
            for field_name, benchmark in base.items()
        }

    def range_for(
        self,
        facility_type: FacilityType,
        field_name: str,
        *,
        state: str | None = None,
    ) -> BenchmarkRange | None:
        return self.ranges_for(facility_type, state=state).get(field_name)


@dataclass(slots=True, frozen=True)
class BenchmarkCheck:
    is_valid: bool
    variance: float
    position: RangePosition
    severity: CheckSeverity


@dataclass(slots=True, frozen=True)
class MedianComparison:
    percent_difference: int
    description: str


def validate_against_benchmark(value: float, benchmark: BenchmarkRange) -> BenchmarkCheck:
    """Position of ``value`` relative to the range, with unsigned variance."""

    position: RangePosition
    if value < benchmark.min:
        position = "below"
        variance = abs(benchmark.variance(value))
    elif value > benchmark.max:
        position = "above"
        variance = benchmark.variance(value)
    else:
        position = "within"
        variance = 0.0

    severity: CheckSeverity
    if variance == 0:
        severity = "ok"
    elif variance <= WARNING_VARIANCE:
        severity = "warning"
    else:
        severity = "critical"
    return BenchmarkCheck(
        is_valid=position == "within",
        variance=variance,
        position=position,
        severity=severity,
    )


def percentile_position(value: float, benchmark: BenchmarkRange) -> int:
    """Linear 0-100 position of ``value`` between the range bounds."""

    if value <= benchmark.min:
        return 0
    if value >= benchmark.max:
        return 100
    return round((value - benchmark.min) / (benchmark.max - benchmark.min) * 100)


def compare_to_median(value: float, benchmark: BenchmarkRange) -> MedianComparison:
    if benchmark.median == 0:
        return MedianComparison(percent_difference=0, description="No market median")
    percent = round((value - benchmark.median) / benchmark.median * 100)
    if abs(percent) <= AT_MEDIAN_PERCENT:
        description = "At market median"
    elif percent > 0:
        description = f"{percent}% above market median"
    else:
        description = f"{abs(percent)}% below market median"
    return MedianComparison(percent_difference=percent, description=description)
