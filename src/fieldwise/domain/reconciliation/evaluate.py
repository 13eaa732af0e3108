"""Single-document field screening.

Responsibilities of this stage:
- flag low-confidence extractions
- flag numeric values implausibly far outside their benchmark range
- flag critical fields that are missing entirely
- accept otherwise-flaggable fields whose confidence clears the auto-resolve bar

Checks are independent: one field can raise several issues, and a failure in
one field never stops the others from being evaluated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fieldwise.domain.model import (
    MAX_PRIORITY,
    Issue,
    IssueKind,
    Missing,
    Number,
    Text,
)

from .contracts import AutoResolvedCheck, FieldEvaluation
from .normalize import try_normalize
from .policy import issue_priority

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from fieldwise.config import ClarificationConfig
    from fieldwise.domain.model import BenchmarkRange, ExtractedField, FieldValue

log = logging.getLogger(__name__)

CRITICAL_PRIORITY = 8
CRITICAL_FIELD_WEIGHT = 2.0


@dataclass(slots=True, frozen=True)
class _Flag:
    kind: IssueKind
    reason: str
    priority: int
    benchmark: BenchmarkRange | None = None


@dataclass(slots=True)
class FieldEvaluator:
    """Screen one document's fields against confidence, benchmarks and criticality."""

    config: ClarificationConfig

    def evaluate(
        self,
        fields: Mapping[str, ExtractedField],
        benchmarks: Mapping[str, BenchmarkRange],
        *,
        case_id: UUID,
        document_id: UUID,
    ) -> FieldEvaluation:
        evaluation = FieldEvaluation(overall_confidence=self.overall_confidence(fields))
        for field_name, extracted in fields.items():
            try:
                self._evaluate_field(
                    evaluation,
                    field_name,
                    extracted,
                    benchmarks.get(field_name),
                    case_id=case_id,
                    document_id=document_id,
                )
            except Exception:
                log.exception("Evaluation of field %s failed; skipping it", field_name)
                evaluation.skipped_fields.append(field_name)

        evaluation.critical_issue_count = sum(
            1
            for issue in evaluation.issues
            if issue.priority >= CRITICAL_PRIORITY or self.config.is_critical(issue.field_name)
        )
        return evaluation

    def overall_confidence(self, fields: Mapping[str, ExtractedField]) -> float:
        """Weighted mean of known confidences; critical fields count double."""

        weighted_sum = 0.0
        total_weight = 0.0
        for field_name, extracted in fields.items():
            if extracted.confidence is None:
                continue
            weight = CRITICAL_FIELD_WEIGHT if self.config.is_critical(field_name) else 1.0
            weighted_sum += extracted.confidence * weight
            total_weight += weight
        if total_weight == 0:
            return 0.0
        return weighted_sum / total_weight

    def _evaluate_field(
        self,
        evaluation: FieldEvaluation,
        field_name: str,
        extracted: ExtractedField,
        benchmark: BenchmarkRange | None,
        *,
        case_id: UUID,
        document_id: UUID,
    ) -> None:
        value = try_normalize(extracted.value, field_name=field_name)
        confidence = extracted.confidence

        for flag in self._flags(field_name, value, confidence, benchmark):
            auto_resolvable = flag.kind != IssueKind.MISSING
            if (
                auto_resolvable
                and confidence is not None
                and confidence >= self.config.auto_resolve_threshold
            ):
                log.info(
                    "Auto-resolved %s on %s (confidence %s%%)",
                    flag.kind,
                    field_name,
                    confidence,
                )
                evaluation.auto_resolved.append(
                    AutoResolvedCheck(
                        field_name=field_name, confidence=confidence, reason=flag.reason
                    )
                )
                continue
            evaluation.issues.append(
                Issue(
                    case_id=case_id,
                    document_id=document_id,
                    field_name=field_name,
                    kind=flag.kind,
                    priority=flag.priority,
                    reason=flag.reason,
                    extracted_value=value if value is not None else extracted.value,
                    confidence=0.0 if flag.kind == IssueKind.MISSING else confidence,
                    suggested_values=extracted.alternatives,
                    benchmark_range=flag.benchmark,
                )
            )

    def _flags(
        self,
        field_name: str,
        value: FieldValue | None,
        confidence: float | None,
        benchmark: BenchmarkRange | None,
    ) -> list[_Flag]:
        flags: list[_Flag] = []
        config = self.config

        if confidence is not None and confidence < config.min_confidence_threshold:
            flags.append(
                _Flag(
                    IssueKind.LOW_CONFIDENCE,
                    f"Extraction confidence ({confidence:g}%) is below threshold "
                    f"({config.min_confidence_threshold:g}%)",
                    issue_priority(
                        field_name, IssueKind.LOW_CONFIDENCE, config=config, confidence=confidence
                    ),
                )
            )

        match value:
            case Number(number) if benchmark is not None:
                variance = benchmark.variance(number)
                if abs(variance) > config.max_benchmark_variance:
                    direction = "above" if variance > 0 else "below"
                    flags.append(
                        _Flag(
                            IssueKind.OUT_OF_RANGE,
                            f"Value is {abs(variance) * 100:.1f}% {direction} expected range "
                            f"({benchmark.min:g}-{benchmark.max:g})",
                            issue_priority(field_name, IssueKind.OUT_OF_RANGE, config=config),
                            benchmark,
                        )
                    )
            case Missing() if config.is_critical(field_name):
                flags.append(
                    _Flag(
                        IssueKind.MISSING,
                        f'Critical field "{field_name}" is missing or empty',
                        MAX_PRIORITY,
                    )
                )
            case Number() | Text() | Missing() | None:
                pass

        return flags
