"""Orchestrator for the clarification subsystem.

One call to :meth:`CaseOrchestrator.process_document` runs the whole pass for a
newly (re-)extracted document:

1) screen its fields with the evaluator and record the issues
2) diff shared fields against other documents of the case and record the conflicts
3) triangulate every touched field across the case
4) recompute the case's unresolved flag from the store

Each issue and each conflict is written in its own savepoint, so one failed
write is skipped without losing the rest of the pass. Recording reopens a stored
record when the new findings differ from the ones it holds.

Stores are reached only through the unit-of-work factory handed in; the engine
keeps no state between calls.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from fieldwise.domain.errors import NotFoundError
from fieldwise.domain.model import (
    EntityType,
    Issue,
    IssueKind,
    Number,
    as_float,
    render,
)
from fieldwise.domain.model.entity import new_id

from .contracts import DocumentProcessingResult, FieldObservation
from .detect import ConflictDetector
from .evaluate import FieldEvaluator
from .lifecycle import RecordOutcome, record_conflict, record_issue, refresh_case_flag
from .policy import issue_priority
from .triangulate import Triangulator

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from uuid import UUID

    from fieldwise.config import ClarificationConfig
    from fieldwise.domain.model import Case, Conflict, Document, ExtractedField, FieldValue
    from fieldwise.domain.ports import (
        BenchmarkProvider,
        ClarificationRepositories,
        ClarificationUnitOfWork,
        ClarificationUnitOfWorkFactory,
    )

    from .contracts import ReconciledField

log = logging.getLogger(__name__)


type FieldsByDocument = dict[UUID, dict[str, ExtractedField]]


@contextmanager
def isolated_write(uow: ClarificationUnitOfWork, subject: str) -> Iterator[None]:
    """Run one write in its own savepoint; a failure is logged, undone and skipped."""

    try:
        with uow.savepoint():
            yield
    except Exception:
        log.exception("Recording %s failed; skipping it", subject)


def observe(document: Document, extracted: ExtractedField) -> FieldObservation:
    return FieldObservation(
        document_id=document.id,
        value=extracted.value,
        confidence=extracted.confidence,
        period_end=document.period_end,
        label=document.filename,
    )


def ordered_pair(
    first: FieldObservation,
    second: FieldObservation,
) -> tuple[FieldObservation, FieldObservation]:
    """Canonical pair order (lower document id first) shared by every worker."""

    if second.document_id.int < first.document_id.int:
        return second, first
    return first, second


def current_fields(
    repositories: ClarificationRepositories,
    documents: Iterable[Document],
) -> FieldsByDocument:
    """Fields of each document's current extraction revision, keyed by name."""

    return {
        document.id: {
            extracted.field_name: extracted
            for extracted in repositories.fields.for_document(
                document.id, revision=document.extraction_revision
            )
        }
        for document in documents
    }


def triangulate_fields(
    triangulator: Triangulator,
    field_names: Iterable[str],
    documents: Iterable[Document],
    fields_by_document: FieldsByDocument,
) -> dict[str, ReconciledField]:
    documents = list(documents)
    reconciled: dict[str, ReconciledField] = {}
    for field_name in sorted(set(field_names)):
        sources = [
            observe(document, fields_by_document[document.id][field_name])
            for document in documents
            if field_name in fields_by_document.get(document.id, {})
        ]
        try:
            reconciled[field_name] = triangulator.reconcile(field_name, sources)
        except Exception:
            log.exception("Triangulation of %s failed; skipping it", field_name)
    return reconciled


def conflict_issue(
    conflict: Conflict,
    document: Document,
    other: Document,
    *,
    config: ClarificationConfig,
) -> Issue:
    """Issue raised on ``document`` for a conflict it takes part in."""

    suggestions: list[FieldValue] = [conflict.value1, conflict.value2]
    value1, value2 = as_float(conflict.value1), as_float(conflict.value2)
    if value1 is not None and value2 is not None:
        suggestions.append(Number((value1 + value2) / 2))
    extracted = conflict.value1 if conflict.document1_id == document.id else conflict.value2
    return Issue(
        case_id=conflict.case_id,
        document_id=document.id,
        field_name=conflict.field_name,
        kind=IssueKind.CONFLICT,
        priority=issue_priority(conflict.field_name, IssueKind.CONFLICT, config=config),
        reason=(
            f"Value differs from {other.filename} by {conflict.variance_percent:.1f}% "
            f"({render(conflict.value1)} vs {render(conflict.value2)})"
        ),
        extracted_value=extracted,
        suggested_values=tuple(suggestions),
    )


@dataclass(slots=True)
class CaseOrchestrator:
    """Run the clarification pass for documents of one case."""

    config: ClarificationConfig
    benchmarks: BenchmarkProvider
    unit_of_work_factory: ClarificationUnitOfWorkFactory
    evaluator: FieldEvaluator = field(init=False)
    detector: ConflictDetector = field(init=False)
    triangulator: Triangulator = field(init=False)

    def __post_init__(self) -> None:
        self.evaluator = FieldEvaluator(self.config)
        self.detector = ConflictDetector(self.config)
        self.triangulator = Triangulator()

    def process_document(
        self,
        case_id: UUID,
        document: Document,
        fields: Mapping[str, ExtractedField],
    ) -> DocumentProcessingResult:
        """Ingest ``fields`` as the next extraction revision of ``document``.

        Raises:
            NotFoundError: ``case_id`` does not exist.
            ValueError: ``document`` belongs to another case.
        """

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            case = self._require_case(repositories, case_id)
            target = self._attach_document(repositories, case, document)
            revision = target.start_revision()
            stamped = self._stamp_fields(target, revision, fields)
            repositories.fields.add_many(stamped.values())
            log.info(
                "Processing %s (revision %s) for case %s: %s field(s)",
                target.filename,
                revision,
                case.id,
                len(stamped),
            )

            result = DocumentProcessingResult(
                case_id=case.id, document_id=target.id, revision=revision
            )

            evaluation = self.evaluator.evaluate(
                stamped,
                self.benchmarks.ranges_for(case.facility_type, state=case.state),
                case_id=case.id,
                document_id=target.id,
            )
            result.auto_resolved = evaluation.auto_resolved
            result.overall_confidence = evaluation.overall_confidence
            for issue in evaluation.issues:
                with isolated_write(uow, f"{issue.kind} issue on {issue.field_name}"):
                    stored, outcome = record_issue(repositories, issue)
                    _track_issue(result, stored, outcome)

            others = repositories.documents.list_for_case(
                case.id,
                exclude=target.id,
                limit=self.config.max_compared_documents,
            )
            fields_by_document = current_fields(repositories, others)
            fields_by_document[target.id] = stamped
            self._detect_conflicts(uow, case, target, others, fields_by_document, result)

            every_document = repositories.documents.list_for_case(case.id)
            missing = [doc for doc in every_document if doc.id not in fields_by_document]
            fields_by_document.update(current_fields(repositories, missing))
            result.reconciled = triangulate_fields(
                self.triangulator, stamped.keys(), every_document, fields_by_document
            )

            target.overall_confidence = evaluation.overall_confidence
            target.pending_issue_count = len(
                repositories.issues.list_pending(document_id=target.id)
            )
            result.has_unresolved_conflicts = refresh_case_flag(repositories, case)
            uow.commit()

        log.info(
            "Processed %s: %s new and %s reopened issue(s), %s new and %s reopened conflict(s), "
            "%s auto-resolved",
            target.filename,
            len(result.issues_created),
            len(result.issues_reopened),
            len(result.conflicts_created),
            len(result.conflicts_reopened),
            len(result.auto_resolved),
        )
        return result

    def reconcile_case(
        self,
        case_id: UUID,
        field_names: Iterable[str] | None = None,
    ) -> dict[str, ReconciledField]:
        """Re-derive reconciled values for ``field_names`` (default: every field)."""

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            case = self._require_case(repositories, case_id)
            documents = repositories.documents.list_for_case(case.id)
            fields_by_document = current_fields(repositories, documents)
            if field_names is None:
                field_names = {
                    name for by_name in fields_by_document.values() for name in by_name
                }
            return triangulate_fields(
                self.triangulator, field_names, documents, fields_by_document
            )

    def _detect_conflicts(
        self,
        uow: ClarificationUnitOfWork,
        case: Case,
        target: Document,
        others: list[Document],
        fields_by_document: FieldsByDocument,
        result: DocumentProcessingResult,
    ) -> None:
        target_fields = fields_by_document[target.id]
        for other in others:
            other_fields = fields_by_document.get(other.id, {})
            for field_name in sorted(target_fields.keys() & other_fields.keys()):
                with isolated_write(uow, f"{field_name} against {other.filename}"):
                    conflict = self.detector.detect(
                        case.id,
                        field_name,
                        *ordered_pair(
                            observe(target, target_fields[field_name]),
                            observe(other, other_fields[field_name]),
                        ),
                    )
                    if conflict is None:
                        continue
                    stored, outcome = record_conflict(uow.repositories, conflict)
                    if outcome == RecordOutcome.UNCHANGED:
                        continue
                    issue = conflict_issue(stored, target, other, config=self.config)
                    stored_issue, issue_outcome = record_issue(uow.repositories, issue)
                    _track_conflict(result, stored, outcome)
                    _track_issue(result, stored_issue, issue_outcome)

    @staticmethod
    def _require_case(repositories: ClarificationRepositories, case_id: UUID) -> Case:
        case = repositories.cases.get(case_id)
        if case is None:
            raise NotFoundError(EntityType.CASE, case_id)
        return case

    @staticmethod
    def _attach_document(
        repositories: ClarificationRepositories,
        case: Case,
        document: Document,
    ) -> Document:
        if document.case_id != case.id:
            raise ValueError(f"Document {document.id} belongs to case {document.case_id}")
        existing = repositories.documents.get(document.id)
        if existing is not None:
            return existing
        repositories.documents.add(document)
        return document

    @staticmethod
    def _stamp_fields(
        document: Document,
        revision: int,
        fields: Mapping[str, ExtractedField],
    ) -> dict[str, ExtractedField]:
        stamped: dict[str, ExtractedField] = {}
        for field_name, extracted in fields.items():
            if extracted.field_name != field_name:
                raise ValueError(
                    f"Field keyed as {field_name!r} is named {extracted.field_name!r}"
                )
            stamped[field_name] = replace(
                extracted, id=new_id(), document_id=document.id, revision=revision
            )
        return stamped


def _track_issue(result: DocumentProcessingResult, issue: Issue, outcome: RecordOutcome) -> None:
    if outcome == RecordOutcome.CREATED:
        result.issues_created.append(issue)
    elif outcome == RecordOutcome.REOPENED:
        result.issues_reopened.append(issue)


def _track_conflict(
    result: DocumentProcessingResult,
    conflict: Conflict,
    outcome: RecordOutcome,
) -> None:
    if outcome == RecordOutcome.CREATED:
        result.conflicts_created.append(conflict)
    elif outcome == RecordOutcome.REOPENED:
        result.conflicts_reopened.append(conflict)
