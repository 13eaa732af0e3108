"""Public domain model surface."""

from __future__ import annotations

from fieldwise.domain.model.case import Case, Document
from fieldwise.domain.model.clarification import (
    MAX_PRIORITY,
    Conflict,
    ConflictKey,
    Issue,
    IssueKey,
)
from fieldwise.domain.model.entity import Entity
from fieldwise.domain.model.enums import (
    ConflictResolution,
    ConflictSeverity,
    EntityType,
    FacilityType,
    IssueKind,
    IssueStatus,
    SuggestedResolution,
)
from fieldwise.domain.model.extraction import ExtractedField
from fieldwise.domain.model.values import (
    MISSING,
    BenchmarkRange,
    BenchmarkUnit,
    Confidence,
    FieldName,
    FieldValue,
    Missing,
    Number,
    Text,
    as_float,
    render,
)

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    # aggregates
    "Case",
    "Document",
    "ExtractedField",
    # clarification
    "Issue",
    "IssueKey",
    "Conflict",
    "ConflictKey",
    "MAX_PRIORITY",
    # enums
    "ConflictResolution",
    "ConflictSeverity",
    "EntityType",
    "FacilityType",
    "IssueKind",
    "IssueStatus",
    "SuggestedResolution",
    # values
    "BenchmarkRange",
    "BenchmarkUnit",
    "Confidence",
    "FieldName",
    "FieldValue",
    "MISSING",
    "Missing",
    "Number",
    "Text",
    "as_float",
    "render",
]
