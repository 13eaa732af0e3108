"""Public interface for the static benchmark adapter."""

from __future__ import annotations

from .provider import (
    BenchmarkCheck,
    MedianComparison,
    StaticBenchmarkProvider,
    compare_to_median,
    percentile_position,
    validate_against_benchmark,
)
from .tables import BENCHMARKS_BY_FACILITY, REGIONAL_ADJUSTMENTS

__all__ = [
    "BENCHMARKS_BY_FACILITY",
    "REGIONAL_ADJUSTMENTS",
    "BenchmarkCheck",
    "MedianComparison",
    "StaticBenchmarkProvider",
    "compare_to_median",
    "percentile_position",
    "validate_against_benchmark",
]
