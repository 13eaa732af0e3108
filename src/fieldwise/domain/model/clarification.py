"""Issues and conflicts awaiting clarification.

Both records follow the same lifecycle: they are created ``pending`` and move to
exactly one terminal state through an explicit resolution. A later extraction
that reports different values for the same key reopens the record in place.
They are never deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar

from fieldwise.domain.errors import InvalidTransitionError
from fieldwise.domain.model.entity import Entity
from fieldwise.domain.model.enums import (
    ConflictResolution,
    ConflictSeverity,
    EntityType,
    IssueKind,
    IssueStatus,
    SuggestedResolution,
)
from fieldwise.domain.model.values import MISSING

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.domain.model.values import BenchmarkRange, FieldValue

MAX_PRIORITY = 10

type IssueKey = tuple[UUID, UUID, str, IssueKind]
type ConflictKey = tuple[UUID, str, UUID, UUID]


@dataclass(eq=False, kw_only=True)
class Issue(Entity):
    """A problem with one field of one document."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ISSUE

    case_id: UUID
    document_id: UUID
    field_name: str
    kind: IssueKind
    priority: int
    reason: str
    extracted_value: FieldValue = MISSING
    confidence: float | None = None
    suggested_values: tuple[FieldValue, ...] = ()
    benchmark_range: BenchmarkRange | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    status: IssueStatus = IssueStatus.PENDING
    resolved_value: FieldValue | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolution_notes: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.priority <= MAX_PRIORITY:
            raise ValueError(f"Issue priority must be within 0-{MAX_PRIORITY}")

    @property
    def key(self) -> IssueKey:
        return (self.case_id, self.document_id, self.field_name, self.kind)

    @property
    def is_pending(self) -> bool:
        return self.status == IssueStatus.PENDING

    def resolve(
        self,
        status: IssueStatus,
        *,
        resolved_by: str,
        resolved_value: FieldValue | None = None,
        notes: str | None = None,
        resolved_at: datetime | None = None,
    ) -> None:
        if status == IssueStatus.PENDING:
            raise InvalidTransitionError("An issue cannot be resolved back to pending")
        if not self.is_pending:
            raise InvalidTransitionError(f"Issue {self.id} is already {self.status}")
        self.status = status
        self.resolved_value = resolved_value
        self.resolved_by = resolved_by
        self.resolution_notes = notes
        self.resolved_at = resolved_at or datetime.now(tz=UTC)

    def reopen(self, current: Issue) -> None:
        """Take over the findings of ``current`` (same key) and return to pending."""

        if current.key != self.key:
            raise ValueError(f"Issue {current.id} does not share the key of issue {self.id}")
        self.priority = current.priority
        self.reason = current.reason
        self.extracted_value = current.extracted_value
        self.confidence = current.confidence
        self.suggested_values = current.suggested_values
        self.benchmark_range = current.benchmark_range
        self.status = IssueStatus.PENDING
        self.resolved_value = None
        self.resolved_by = None
        self.resolved_at = None
        self.resolution_notes = None


@dataclass(eq=False, kw_only=True)
class Conflict(Entity):
    """Disagreement between two documents of one case on one field."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CONFLICT

    case_id: UUID
    field_name: str
    document1_id: UUID
    document2_id: UUID
    value1: FieldValue
    value2: FieldValue
    variance: float
    severity: ConflictSeverity
    suggested_resolution: SuggestedResolution
    reasoning: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    resolution: ConflictResolution = ConflictResolution.PENDING
    resolved_value: FieldValue | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    rationale: str | None = None

    def __post_init__(self) -> None:
        if self.document1_id == self.document2_id:
            raise ValueError("Conflict requires two distinct documents")

    @property
    def key(self) -> ConflictKey:
        return (self.case_id, self.field_name, self.document1_id, self.document2_id)

    @property
    def variance_percent(self) -> float:
        return self.variance * 100

    @property
    def is_pending(self) -> bool:
        return self.resolution == ConflictResolution.PENDING

    def involves(self, document_id: UUID) -> bool:
        return document_id in (self.document1_id, self.document2_id)

    def resolve(
        self,
        resolution: ConflictResolution,
        *,
        resolved_by: str,
        resolved_value: FieldValue | None = None,
        rationale: str | None = None,
        resolved_at: datetime | None = None,
    ) -> None:
        if resolution == ConflictResolution.PENDING:
            raise InvalidTransitionError("A conflict cannot be resolved back to pending")
        if not self.is_pending:
            raise InvalidTransitionError(f"Conflict {self.id} is already {self.resolution}")
        self.resolution = resolution
        self.resolved_value = resolved_value
        self.resolved_by = resolved_by
        self.rationale = rationale
        self.resolved_at = resolved_at or datetime.now(tz=UTC)

    def reopen(self, current: Conflict) -> None:
        """Adopt the values of a fresh detection for the same pair and return to pending."""

        if current.key != self.key:
            raise ValueError(
                f"Conflict {current.id} does not share the key of conflict {self.id}"
            )
        self.value1 = current.value1
        self.value2 = current.value2
        self.variance = current.variance
        self.severity = current.severity
        self.suggested_resolution = current.suggested_resolution
        self.reasoning = current.reasoning
        self.resolution = ConflictResolution.PENDING
        self.resolved_value = None
        self.resolved_by = None
        self.resolved_at = None
        self.rationale = None
