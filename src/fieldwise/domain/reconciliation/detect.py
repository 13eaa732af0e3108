"""Pairwise cross-document conflict detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fieldwise.domain.model import (
    Conflict,
    ConflictSeverity,
    Missing,
    Number,
    SuggestedResolution,
    Text,
)

from .normalize import try_normalize
from .policy import conflict_severity, suggest_resolution

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.config import ClarificationConfig
    from fieldwise.domain.model import FieldValue

    from .contracts import FieldObservation

log = logging.getLogger(__name__)

TEXT_MISMATCH_VARIANCE = 1.0


def numeric_variance(value1: float, value2: float) -> float:
    """Relative disagreement, scaled by the pair's mean (floored at 1)."""

    average = (value1 + value2) / 2
    return abs(value1 - value2) / max(abs(average), 1.0)


@dataclass(slots=True)
class ConflictDetector:
    """Compare the same field as read from two documents of one case."""

    config: ClarificationConfig

    def detect(
        self,
        case_id: UUID,
        field_name: str,
        entry_a: FieldObservation,
        entry_b: FieldObservation,
    ) -> Conflict | None:
        if entry_a.document_id == entry_b.document_id:
            return None

        value_a = try_normalize(entry_a.value, field_name=field_name)
        value_b = try_normalize(entry_b.value, field_name=field_name)
        if value_a is None or value_b is None:
            return None

        match value_a, value_b:
            case Number(number_a), Number(number_b):
                return self._numeric_conflict(
                    case_id, field_name, entry_a, entry_b, number_a, number_b
                )
            case Text(text_a), Text(text_b):
                if text_a.casefold() == text_b.casefold():
                    return None
                return self._build(
                    case_id,
                    field_name,
                    (entry_a, value_a),
                    (entry_b, value_b),
                    variance=TEXT_MISMATCH_VARIANCE,
                    severity=ConflictSeverity.MEDIUM,
                    suggestion=SuggestedResolution.MANUAL_REVIEW,
                    reasoning="Text values differ - manual review recommended",
                )
            case (Missing(), _) | (_, Missing()) | (Number(), Text()) | (Text(), Number()):
                return None

    def _numeric_conflict(
        self,
        case_id: UUID,
        field_name: str,
        entry_a: FieldObservation,
        entry_b: FieldObservation,
        number_a: float,
        number_b: float,
    ) -> Conflict | None:
        if number_a == 0 and number_b == 0:
            return None
        variance = numeric_variance(number_a, number_b)
        if variance <= self.config.max_document_variance:
            return None

        severity = conflict_severity(field_name, variance, config=self.config)
        suggestion = suggest_resolution(entry_a, entry_b, variance)
        log.debug(
            "Conflict on %s: %s vs %s (variance %.3f, %s)",
            field_name,
            number_a,
            number_b,
            variance,
            severity,
        )
        return self._build(
            case_id,
            field_name,
            (entry_a, Number(number_a)),
            (entry_b, Number(number_b)),
            variance=variance,
            severity=severity,
            suggestion=suggestion.resolution,
            reasoning=suggestion.reasoning,
        )

    @staticmethod
    def _build(
        case_id: UUID,
        field_name: str,
        first: tuple[FieldObservation, FieldValue],
        second: tuple[FieldObservation, FieldValue],
        *,
        variance: float,
        severity: ConflictSeverity,
        suggestion: SuggestedResolution,
        reasoning: str,
    ) -> Conflict:
        (entry_a, value_a), (entry_b, value_b) = first, second
        return Conflict(
            case_id=case_id,
            field_name=field_name,
            document1_id=entry_a.document_id,
            document2_id=entry_b.document_id,
            value1=value_a,
            value2=value_b,
            variance=variance,
            severity=severity,
            suggested_resolution=suggestion,
            reasoning=reasoning,
        )
