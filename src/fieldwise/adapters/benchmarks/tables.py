"""Industry benchmark ranges for senior-care facilities.

Values are annual figures; percentages are fractions (0.55 == 55%).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from fieldwise.domain.model import BenchmarkRange, FacilityType

if TYPE_CHECKING:
    from fieldwise.domain.model import BenchmarkUnit


def _range(
    minimum: float,
    median: float,
    maximum: float,
    unit: BenchmarkUnit,
    description: str,
) -> BenchmarkRange:
    return BenchmarkRange(
        min=minimum,
        median=median,
        max=maximum,
        unit=unit,
        description=description,
    )


SNF_BENCHMARKS: Final[dict[str, BenchmarkRange]] = {
    # revenue
    "revenuePerBed": _range(60_000, 95_000, 150_000, "currency", "Annual revenue per licensed bed"),
    "totalRevenue": _range(3_000_000, 12_000_000, 50_000_000, "currency", "Total annual revenue"),
    # payer mix
    "medicarePercent": _range(0.05, 0.15, 0.35, "percent", "Medicare as percent of revenue"),
    "medicaidPercent": _range(0.40, 0.60, 0.85, "percent", "Medicaid as percent of revenue"),
    "managedCarePercent": _range(
        0.05, 0.12, 0.30, "percent", "Managed care as percent of revenue"
    ),
    "privatePayPercent": _range(0.02, 0.08, 0.25, "percent", "Private pay as percent of revenue"),
    # expenses
    "laborCostPercent": _range(0.45, 0.55, 0.70, "percent", "Labor cost as percent of revenue"),
    "agencyLaborPercent": _range(
        0.0, 0.08, 0.30, "percent", "Agency labor as percent of total labor"
    ),
    "managementFeePercent": _range(
        0.03, 0.05, 0.08, "percent", "Management fee as percent of revenue"
    ),
    # profitability
    "noiMargin": _range(0.05, 0.12, 0.25, "percent", "NOI as percent of revenue"),
    "ebitdarMargin": _range(0.08, 0.15, 0.30, "percent", "EBITDAR as percent of revenue"),
    # operations
    "occupancyRate": _range(0.60, 0.82, 0.98, "percent", "Average occupancy rate"),
    "hppd": _range(3.0, 4.0, 5.5, "hours", "Total nursing hours per patient day"),
    "rnHppd": _range(0.4, 0.75, 1.5, "hours", "RN hours per patient day"),
    # facility
    "licensedBeds": _range(30, 100, 300, "count", "Number of licensed beds"),
    "averageDailyCensus": _range(20, 82, 280, "count", "Average daily census"),
    # valuation
    "pricePerBed": _range(30_000, 85_000, 175_000, "currency", "Price per licensed bed"),
    "capRate": _range(0.06, 0.085, 0.13, "percent", "Cap rate"),
}

ALF_BENCHMARKS: Final[dict[str, BenchmarkRange]] = {
    "revenuePerBed": _range(40_000, 65_000, 120_000, "currency", "Annual revenue per unit"),
    "totalRevenue": _range(2_000_000, 8_000_000, 30_000_000, "currency", "Total annual revenue"),
    "privatePayPercent": _range(0.70, 0.85, 0.95, "percent", "Private pay as percent of revenue"),
    "medicaidPercent": _range(
        0.02, 0.10, 0.25, "percent", "Medicaid waiver as percent of revenue"
    ),
    "laborCostPercent": _range(0.35, 0.45, 0.55, "percent", "Labor cost as percent of revenue"),
    "managementFeePercent": _range(
        0.04, 0.05, 0.08, "percent", "Management fee as percent of revenue"
    ),
    "noiMargin": _range(0.15, 0.25, 0.35, "percent", "NOI as percent of revenue"),
    "occupancyRate": _range(0.70, 0.88, 0.98, "percent", "Average occupancy rate"),
    "licensedBeds": _range(20, 80, 200, "count", "Number of units"),
    "pricePerBed": _range(50_000, 100_000, 200_000, "currency", "Price per unit"),
    "capRate": _range(0.05, 0.07, 0.10, "percent", "Cap rate"),
}

ILF_BENCHMARKS: Final[dict[str, BenchmarkRange]] = {
    "revenuePerBed": _range(25_000, 45_000, 80_000, "currency", "Annual revenue per unit"),
    "totalRevenue": _range(1_500_000, 5_000_000, 20_000_000, "currency", "Total annual revenue"),
    "privatePayPercent": _range(0.90, 0.98, 1.0, "percent", "Private pay as percent of revenue"),
    "laborCostPercent": _range(0.25, 0.35, 0.45, "percent", "Labor cost as percent of revenue"),
    "managementFeePercent": _range(
        0.03, 0.04, 0.06, "percent", "Management fee as percent of revenue"
    ),
    "noiMargin": _range(0.20, 0.32, 0.45, "percent", "NOI as percent of revenue"),
    "occupancyRate": _range(0.80, 0.92, 0.99, "percent", "Average occupancy rate"),
    "licensedBeds": _range(30, 100, 300, "count", "Number of units"),
    "pricePerBed": _range(75_000, 125_000, 250_000, "currency", "Price per unit"),
    "capRate": _range(0.045, 0.065, 0.085, "percent", "Cap rate"),
}

BENCHMARKS_BY_FACILITY: Final[dict[FacilityType, dict[str, BenchmarkRange]]] = {
    FacilityType.SNF: SNF_BENCHMARKS,
    FacilityType.ALF: ALF_BENCHMARKS,
    FacilityType.ILF: ILF_BENCHMARKS,
}

# state -> field -> multiplier; fields not listed stay unadjusted
REGIONAL_ADJUSTMENTS: Final[dict[str, dict[str, float]]] = {
    "CA": {"revenuePerBed": 1.25, "laborCostPercent": 1.15, "pricePerBed": 1.30},
    "NY": {"revenuePerBed": 1.20, "laborCostPercent": 1.10, "pricePerBed": 1.25},
    "TX": {"revenuePerBed": 0.90, "laborCostPercent": 0.95, "pricePerBed": 0.85},
    "FL": {"revenuePerBed": 0.95, "laborCostPercent": 1.00, "pricePerBed": 0.95},
    "WA": {"revenuePerBed": 1.10, "laborCostPercent": 1.05, "pricePerBed": 1.10},
    "OR": {"revenuePerBed": 1.05, "laborCostPercent": 1.05, "pricePerBed": 1.05},
}
