"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Discriminator used for typed lookups and error reporting."""

    CASE = "case"
    DOCUMENT = "document"
    EXTRACTED_FIELD = "extracted_field"
    ISSUE = "issue"
    CONFLICT = "conflict"


class FacilityType(StrEnum):
    SNF = "SNF"
    ALF = "ALF"
    ILF = "ILF"


class IssueKind(StrEnum):
    LOW_CONFIDENCE = "low_confidence"
    OUT_OF_RANGE = "out_of_range"
    MISSING = "missing"
    CONFLICT = "conflict"


class IssueStatus(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class ConflictSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SuggestedResolution(StrEnum):
    """Resolution proposed by the detector; never applied automatically."""

    USE_FIRST = "use_first"
    USE_SECOND = "use_second"
    USE_AVERAGE = "use_average"
    MANUAL_REVIEW = "manual_review"


class ConflictResolution(StrEnum):
    PENDING = "pending"
    USE_FIRST = "use_first"
    USE_SECOND = "use_second"
    USE_AVERAGE = "use_average"
    MANUAL_VALUE = "manual_value"
    IGNORED = "ignored"
