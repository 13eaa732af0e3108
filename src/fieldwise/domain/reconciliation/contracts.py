"""Observation and result dataclasses passed between clarification stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fieldwise.domain.model import MISSING

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from fieldwise.domain.model import Conflict, FieldValue, Issue


@dataclass(slots=True, frozen=True, kw_only=True)
class FieldObservation:
    """One document's reading of one field, as seen by detection and triangulation."""

    document_id: UUID
    value: FieldValue
    confidence: float | None = None
    period_end: date | None = None
    label: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or str(self.document_id)


@dataclass(slots=True, frozen=True, kw_only=True)
class ReconciledSource:
    document_id: UUID
    value: FieldValue
    confidence: float


@dataclass(slots=True, frozen=True, kw_only=True)
class ReconciledField:
    """Current best value for one field across a case; re-derived, never stored."""

    field_name: str
    sources: tuple[ReconciledSource, ...]
    reconciled_value: FieldValue = MISSING
    reconciled_confidence: float = 0.0
    methodology: str = ""


@dataclass(slots=True, frozen=True, kw_only=True)
class AutoResolvedCheck:
    """A check that would have flagged but was accepted on high confidence."""

    field_name: str
    confidence: float
    reason: str


@dataclass(slots=True, kw_only=True)
class FieldEvaluation:
    """Outcome of screening one document's fields."""

    issues: list[Issue] = field(default_factory=list["Issue"])
    auto_resolved: list[AutoResolvedCheck] = field(default_factory=list[AutoResolvedCheck])
    skipped_fields: list[str] = field(default_factory=list[str])
    overall_confidence: float = 0.0
    critical_issue_count: int = 0

    @property
    def auto_resolved_fields(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(check.field_name for check in self.auto_resolved))


@dataclass(slots=True, kw_only=True)
class DocumentProcessingResult:
    """What one orchestration pass created and derived for a document."""

    case_id: UUID
    document_id: UUID
    revision: int
    issues_created: list[Issue] = field(default_factory=list["Issue"])
    issues_reopened: list[Issue] = field(default_factory=list["Issue"])
    conflicts_created: list[Conflict] = field(default_factory=list["Conflict"])
    conflicts_reopened: list[Conflict] = field(default_factory=list["Conflict"])
    auto_resolved: list[AutoResolvedCheck] = field(default_factory=list[AutoResolvedCheck])
    reconciled: dict[str, ReconciledField] = field(default_factory=dict[str, ReconciledField])
    overall_confidence: float = 0.0
    has_unresolved_conflicts: bool = False


@dataclass(slots=True, kw_only=True)
class CaseAnalysis:
    """Case-wide cross-document consistency report."""

    case_id: UUID
    total_documents: int
    analyzed_fields: int
    conflicts: list[Conflict] = field(default_factory=list["Conflict"])
    triangulations: list[ReconciledField] = field(default_factory=list[ReconciledField])
    consistency_score: int = 100
    recommendations: list[str] = field(default_factory=list[str])
    has_unresolved_conflicts: bool = False
