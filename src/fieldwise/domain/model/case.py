"""Case aggregate root and the documents it owns."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import ClassVar
from uuid import UUID

from fieldwise.domain.model.entity import Entity
from fieldwise.domain.model.enums import EntityType, FacilityType


@dataclass(eq=False, kw_only=True)
class Case(Entity):
    """One deal under review, grouping every document about a facility.

    ``has_unresolved_conflicts`` is derived state: it only changes through
    :meth:`recompute_unresolved`, which callers feed with a fresh read of
    pending-record existence.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CASE

    name: str
    facility_type: FacilityType = FacilityType.SNF
    state: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    _has_unresolved_conflicts: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.state is not None:
            self.state = self.state.strip().upper() or None

    @property
    def has_unresolved_conflicts(self) -> bool:
        return self._has_unresolved_conflicts

    def recompute_unresolved(self, *, pending_exists: bool) -> bool:
        """Align the flag with the store; return whether it changed."""

        changed = self._has_unresolved_conflicts != pending_exists
        self._has_unresolved_conflicts = pending_exists
        return changed


@dataclass(eq=False, kw_only=True)
class Document(Entity):
    """A source document attached to a case.

    Documents are append-only. Re-processing bumps ``extraction_revision`` and
    attaches a fresh field set; earlier revisions stay on file.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.DOCUMENT

    case_id: UUID
    filename: str
    document_type: str | None = None
    period_end: date | None = None
    ingested_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    extraction_revision: int = 0
    overall_confidence: float | None = None
    pending_issue_count: int = 0

    def start_revision(self) -> int:
        self.extraction_revision += 1
        return self.extraction_revision
