"""Case-wide cross-document consistency analysis."""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

from fieldwise.domain.errors import NotFoundError
from fieldwise.domain.model import ConflictSeverity, EntityType

from .contracts import CaseAnalysis
from .detect import ConflictDetector
from .engine import current_fields, isolated_write, observe, ordered_pair, triangulate_fields
from .lifecycle import record_conflict, refresh_case_flag
from .triangulate import Triangulator

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.config import ClarificationConfig
    from fieldwise.domain.model import Conflict
    from fieldwise.domain.ports import ClarificationUnitOfWorkFactory

    from .contracts import ReconciledField

log = logging.getLogger(__name__)

HIGH_VARIANCE_PERCENT = 20
LOW_RECONCILED_CONFIDENCE = 60
SINGLE_DOCUMENT_ADVICE = "Upload additional documents for cross-validation"
CONSISTENT_ADVICE = "Document data is consistent - proceed with analysis"


def consistency_score(total_documents: int, analyzed_fields: int, conflict_count: int) -> int:
    """Share of possible pairwise comparisons that agree, as 0-100."""

    if analyzed_fields == 0:
        return 100
    comparisons = analyzed_fields * total_documents * (total_documents - 1) / 2
    rate = conflict_count / comparisons if comparisons > 0 else 0.0
    return round(max(0.0, 1 - rate) * 100)


def recommendations(
    conflicts: list[Conflict],
    triangulations: list[ReconciledField],
) -> list[str]:
    advice: list[str] = []

    critical = sum(1 for conflict in conflicts if conflict.severity == ConflictSeverity.CRITICAL)
    if critical:
        advice.append(f"Review {critical} critical conflict(s) before proceeding with analysis")

    high_variance = dict.fromkeys(
        conflict.field_name
        for conflict in conflicts
        if conflict.variance_percent > HIGH_VARIANCE_PERCENT
    )
    if high_variance:
        advice.append(f"Fields with high variance: {', '.join(high_variance)}")

    weak = sum(
        1
        for reconciled in triangulations
        if reconciled.reconciled_confidence < LOW_RECONCILED_CONFIDENCE
    )
    if weak:
        advice.append(
            f"{weak} field(s) have low reconciled confidence - consider additional data sources"
        )

    return advice or [CONSISTENT_ADVICE]


def analyze_case(
    case_id: UUID,
    *,
    config: ClarificationConfig,
    unit_of_work_factory: ClarificationUnitOfWorkFactory,
) -> CaseAnalysis:
    """Compare every pair of current documents in a case and report consistency.

    Conflicts found here are recorded exactly as a per-document pass records
    them, one savepoint per pair and field; the returned list holds the stored
    records.
    """

    detector = ConflictDetector(config)
    triangulator = Triangulator()

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        case = repositories.cases.get(case_id)
        if case is None:
            raise NotFoundError(EntityType.CASE, case_id)

        documents = repositories.documents.list_for_case(case.id)
        if len(documents) < 2:  # noqa: PLR2004
            flag = refresh_case_flag(repositories, case)
            uow.commit()
            return CaseAnalysis(
                case_id=case.id,
                total_documents=len(documents),
                analyzed_fields=0,
                consistency_score=100,
                recommendations=[SINGLE_DOCUMENT_ADVICE],
                has_unresolved_conflicts=flag,
            )

        fields_by_document = current_fields(repositories, documents)
        field_names = sorted({name for by_name in fields_by_document.values() for name in by_name})

        conflicts: list[Conflict] = []
        for first, second in itertools.combinations(documents, 2):
            first_fields = fields_by_document[first.id]
            second_fields = fields_by_document[second.id]
            for field_name in sorted(first_fields.keys() & second_fields.keys()):
                subject = f"{field_name} between {first.filename} and {second.filename}"
                with isolated_write(uow, subject):
                    detected = detector.detect(
                        case.id,
                        field_name,
                        *ordered_pair(
                            observe(first, first_fields[field_name]),
                            observe(second, second_fields[field_name]),
                        ),
                    )
                    if detected is not None:
                        stored, _ = record_conflict(repositories, detected)
                        conflicts.append(stored)

        multi_source = [
            name
            for name in field_names
            if sum(name in by_name for by_name in fields_by_document.values()) >= 2  # noqa: PLR2004
        ]
        triangulations = list(
            triangulate_fields(triangulator, multi_source, documents, fields_by_document).values()
        )

        flag = refresh_case_flag(repositories, case)
        uow.commit()

    analysis = CaseAnalysis(
        case_id=case_id,
        total_documents=len(documents),
        analyzed_fields=len(field_names),
        conflicts=conflicts,
        triangulations=triangulations,
        consistency_score=consistency_score(len(documents), len(field_names), len(conflicts)),
        recommendations=recommendations(conflicts, triangulations),
        has_unresolved_conflicts=flag,
    )
    log.info(
        "Analyzed case %s: %s document(s), %s field(s), %s conflict(s), score %s",
        case_id,
        analysis.total_documents,
        analysis.analyzed_fields,
        len(conflicts),
        analysis.consistency_score,
    )
    return analysis
