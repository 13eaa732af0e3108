"""Benchmark lookup port."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fieldwise.domain.model import BenchmarkRange, FacilityType


@runtime_checkable
class BenchmarkProvider(Protocol):
    """Expected numeric ranges per field for one facility category.

    Implementations are pure lookups; ``state`` selects a regional adjustment
    where the provider has one.
    """

    def ranges_for(
        self,
        facility_type: FacilityType,
        *,
        state: str | None = None,
    ) -> dict[str, BenchmarkRange]: ...
