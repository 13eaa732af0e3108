from __future__ import annotations

import pytest

from fieldwise.domain.model import MISSING, BenchmarkRange, Number, Text, as_float, render


def test_render() -> None:
    assert render(Number(1_150_000.0)) == "1150000"
    assert render(Number(0.85)) == "0.85"
    assert render(Text("Acme")) == "Acme"
    assert render(MISSING) is None


def test_as_float_only_reads_numbers() -> None:
    assert as_float(Number(3.5)) == 3.5
    assert as_float(Text("3.5")) is None
    assert as_float(MISSING) is None


def test_benchmark_range_variance() -> None:
    hppd = BenchmarkRange(min=3.0, median=4.0, max=5.5, unit="hours")

    assert hppd.variance(4.2) == 0.0
    assert hppd.variance(7.0) == pytest.approx(1.5 / 5.5)
    assert hppd.variance(2.4) == pytest.approx(-0.2)


def test_zero_bound_uses_absolute_distance() -> None:
    agency = BenchmarkRange(min=0.0, median=0.05, max=0.15, unit="percent")

    assert agency.variance(-0.1) == pytest.approx(-0.1)


def test_scaled_keeps_metadata() -> None:
    revenue = BenchmarkRange(min=100.0, median=150.0, max=200.0, unit="currency", description="x")

    scaled = revenue.scaled(1.25)

    assert (scaled.min, scaled.median, scaled.max) == (125.0, 187.5, 250.0)
    assert scaled.unit == "currency"
    assert scaled.description == "x"


def test_benchmark_range_must_be_ordered() -> None:
    with pytest.raises(ValueError, match="min <= median <= max"):
        BenchmarkRange(min=5.0, median=4.0, max=6.0)
