"""Deterministic severity, priority and resolution-suggestion rules.

Everything here is a pure function of its inputs and the active
``ClarificationConfig``; the detector and evaluator only decide *whether* to
flag, this module decides *how loudly* and *what to propose*.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fieldwise.domain.model import (
    MAX_PRIORITY,
    ConflictSeverity,
    IssueKind,
    SuggestedResolution,
)

if TYPE_CHECKING:
    from fieldwise.config import ClarificationConfig

    from .contracts import FieldObservation

BASE_PRIORITY = 5
CRITICAL_FIELD_BOOST = 3
_KIND_BOOST: dict[IssueKind, int] = {
    IssueKind.MISSING: 3,
    IssueKind.CONFLICT: 2,
    IssueKind.OUT_OF_RANGE: 1,
}
LOW_CONFIDENCE_STEP = 25

CONFIDENCE_GAP = 20
AVERAGE_VARIANCE_CEILING = 0.15

# (threshold, severity) pairs checked top-down; strict ``>`` comparisons
_CRITICAL_FIELD_SEVERITY: tuple[tuple[float, ConflictSeverity], ...] = (
    (0.20, ConflictSeverity.CRITICAL),
    (0.10, ConflictSeverity.HIGH),
)
_REGULAR_FIELD_SEVERITY: tuple[tuple[float, ConflictSeverity], ...] = (
    (0.30, ConflictSeverity.HIGH),
    (0.15, ConflictSeverity.MEDIUM),
)

DEFAULT_OBSERVATION_CONFIDENCE = 50.0


@dataclass(slots=True, frozen=True)
class Suggestion:
    resolution: SuggestedResolution
    reasoning: str


def issue_priority(
    field_name: str,
    kind: IssueKind,
    *,
    config: ClarificationConfig,
    confidence: float | None = None,
) -> int:
    """Priority 0-10; higher means more urgent."""

    priority = BASE_PRIORITY
    if config.is_critical(field_name):
        priority += CRITICAL_FIELD_BOOST
    if kind == IssueKind.LOW_CONFIDENCE:
        if confidence is not None:
            priority += math.floor((100 - confidence) / LOW_CONFIDENCE_STEP)
    else:
        priority += _KIND_BOOST[kind]
    return max(0, min(MAX_PRIORITY, priority))


def conflict_severity(
    field_name: str,
    variance: float,
    *,
    config: ClarificationConfig,
) -> ConflictSeverity:
    if field_name in config.severity_critical_fields:
        ladder, floor = _CRITICAL_FIELD_SEVERITY, ConflictSeverity.MEDIUM
    else:
        ladder, floor = _REGULAR_FIELD_SEVERITY, ConflictSeverity.LOW
    for threshold, severity in ladder:
        if variance > threshold:
            return severity
    return floor


def effective_confidence(observation: FieldObservation) -> float:
    if observation.confidence is None:
        return DEFAULT_OBSERVATION_CONFIDENCE
    return observation.confidence


def suggest_resolution(
    first: FieldObservation,
    second: FieldObservation,
    variance: float,
) -> Suggestion:
    """Tie-break order: confidence gap, then recency, then averaging, else manual."""

    confidence1 = effective_confidence(first)
    confidence2 = effective_confidence(second)
    if confidence1 - confidence2 >= CONFIDENCE_GAP:
        return Suggestion(
            SuggestedResolution.USE_FIRST,
            f"{first.display_name} has higher extraction confidence "
            f"({confidence1:g}% vs {confidence2:g}%)",
        )
    if confidence2 - confidence1 >= CONFIDENCE_GAP:
        return Suggestion(
            SuggestedResolution.USE_SECOND,
            f"{second.display_name} has higher extraction confidence "
            f"({confidence2:g}% vs {confidence1:g}%)",
        )

    if first.period_end is not None and second.period_end is not None:
        if first.period_end > second.period_end:
            return Suggestion(
                SuggestedResolution.USE_FIRST,
                f"{first.display_name} covers a more recent period",
            )
        if second.period_end > first.period_end:
            return Suggestion(
                SuggestedResolution.USE_SECOND,
                f"{second.display_name} covers a more recent period",
            )

    if variance <= AVERAGE_VARIANCE_CEILING:
        return Suggestion(
            SuggestedResolution.USE_AVERAGE,
            "Values are within 15% - averaging may be appropriate",
        )
    return Suggestion(
        SuggestedResolution.MANUAL_REVIEW,
        f"Large variance ({variance * 100:.1f}%) requires manual review",
    )
