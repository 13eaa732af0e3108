"""Confidence-weighted reconciliation of one field across many documents."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fieldwise.domain.model import MISSING, Missing, Number, Text

from .contracts import ReconciledField, ReconciledSource
from .normalize import try_normalize
from .policy import effective_confidence

if TYPE_CHECKING:
    from .contracts import FieldObservation

WEIGHTED_AVERAGE = "confidence-weighted average"
HIGHEST_CONFIDENCE = "highest confidence source"
NO_SOURCES = "no usable sources"


@dataclass(slots=True)
class Triangulator:
    """Pure; safe to call concurrently for different fields or cases."""

    def reconcile(
        self,
        field_name: str,
        sources: Iterable[FieldObservation],
    ) -> ReconciledField:
        usable = _usable_sources(field_name, sources)
        numeric = [source for source in usable if isinstance(source.value, Number)]
        if numeric:
            return _weighted_average(field_name, numeric)
        if usable:
            return _highest_confidence(field_name, usable)
        return ReconciledField(
            field_name=field_name,
            sources=(),
            reconciled_value=MISSING,
            reconciled_confidence=0.0,
            methodology=NO_SOURCES,
        )


def _usable_sources(
    field_name: str,
    sources: Iterable[FieldObservation],
) -> list[ReconciledSource]:
    usable: list[ReconciledSource] = []
    for source in sources:
        value = try_normalize(source.value, field_name=field_name)
        match value:
            case None | Missing():
                continue
            case Number() | Text():
                usable.append(
                    ReconciledSource(
                        document_id=source.document_id,
                        value=value,
                        confidence=effective_confidence(source),
                    )
                )
    return usable


def _weighted_average(field_name: str, numeric: list[ReconciledSource]) -> ReconciledField:
    values = [source.value.value for source in numeric if isinstance(source.value, Number)]
    confidences = [source.confidence for source in numeric]

    total_weight = sum(confidences)
    if total_weight > 0:
        reconciled = sum(v * c for v, c in zip(values, confidences, strict=True)) / total_weight
    else:
        reconciled = sum(values) / len(values)
    low, high = min(values), max(values)
    # float summation can land a hair outside the observed range
    reconciled = min(max(reconciled, low), high)

    spread = (high - low) / high if high > 0 else 0.0
    agreement = 1 - min(spread, 1.0)
    average_confidence = total_weight / len(confidences)

    return ReconciledField(
        field_name=field_name,
        sources=tuple(numeric),
        reconciled_value=Number(reconciled),
        reconciled_confidence=average_confidence * agreement,
        methodology=WEIGHTED_AVERAGE,
    )


def _highest_confidence(field_name: str, usable: list[ReconciledSource]) -> ReconciledField:
    # max() keeps the first of equal keys, so ties go to the earliest source
    best = max(usable, key=lambda source: source.confidence)
    return ReconciledField(
        field_name=field_name,
        sources=tuple(usable),
        reconciled_value=best.value,
        reconciled_confidence=best.confidence,
        methodology=HIGHEST_CONFIDENCE,
    )
