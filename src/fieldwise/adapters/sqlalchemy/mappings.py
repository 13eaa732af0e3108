"""SQLAlchemy mapping metadata for the fieldwise domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from fieldwise.domain.model import (
    MISSING,
    BenchmarkRange,
    Case,
    Conflict,
    ConflictResolution,
    ConflictSeverity,
    Document,
    ExtractedField,
    FacilityType,
    FieldValue,
    Issue,
    IssueKind,
    IssueStatus,
    Missing,
    Number,
    SuggestedResolution,
    Text as TextValue,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def field_value_to_json(value: FieldValue) -> dict[str, Any]:
    match value:
        case Number(number):
            return {"kind": "number", "value": number}
        case TextValue(text):
            return {"kind": "text", "value": text}
        case Missing():
            return {"kind": "missing"}


def field_value_from_json(payload: object) -> FieldValue:
    if not isinstance(payload, dict):
        return MISSING
    data = cast(dict[str, Any], payload)
    match data.get("kind"):
        case "number":
            return Number(float(data["value"]))
        case "text":
            return TextValue(str(data["value"]))
        case _:
            return MISSING


class FieldValueType(TypeDecorator[FieldValue]):
    """``FieldValue`` stored as a tagged JSON object."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: FieldValue | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(field_value_to_json(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> FieldValue | None:
        _ = dialect
        if value is None:
            return None
        return field_value_from_json(json.loads(value))


class FieldValueTupleType(TypeDecorator[tuple[FieldValue, ...]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: tuple[FieldValue, ...] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps([field_value_to_json(item) for item in value])

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[FieldValue, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(field_value_from_json(item) for item in items)


class BenchmarkRangeType(TypeDecorator[BenchmarkRange]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: BenchmarkRange | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(
            {
                "min": value.min,
                "median": value.median,
                "max": value.max,
                "unit": value.unit,
                "description": value.description,
            }
        )

    def process_result_value(self, value: str | None, dialect: Dialect) -> BenchmarkRange | None:
        _ = dialect
        if value is None:
            return None
        loaded = cast(dict[str, Any], json.loads(value))
        return BenchmarkRange(
            min=float(loaded["min"]),
            median=float(loaded["median"]),
            max=float(loaded["max"]),
            unit=loaded.get("unit"),
            description=loaded.get("description"),
        )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

case_table = Table(
    "deal",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("facility_type", Enum(FacilityType, native_enum=False), nullable=False),
    Column("state", String(2), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column(
        "has_unresolved_conflicts",
        Boolean,
        key="_has_unresolved_conflicts",
        nullable=False,
        default=False,
    ),
)

document_table = Table(
    "document",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("case_id", UUIDColumnType, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False),
    Column("filename", String, nullable=False),
    Column("document_type", String, nullable=True),
    Column("period_end", Date, nullable=True),
    Column("ingested_at", UTCDateTime(), nullable=False),
    Column("extraction_revision", Integer, nullable=False, default=0),
    Column("overall_confidence", Float, nullable=True),
    Column("pending_issue_count", Integer, nullable=False, default=0),
    Index("ix_document_case_ingested", "case_id", "ingested_at"),
)

extracted_field_table = Table(
    "extracted_field",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "document_id",
        UUIDColumnType,
        ForeignKey("document.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("field_name", String, nullable=False),
    Column("value", FieldValueType(), nullable=False),
    Column("confidence", Float, nullable=True),
    Column("alternatives", FieldValueTupleType(), nullable=False),
    Column("revision", Integer, nullable=False),
    Column("source", String, nullable=True),
    UniqueConstraint("document_id", "revision", "field_name", name="uq_extracted_field_revision"),
)

issue_table = Table(
    "issue",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("case_id", UUIDColumnType, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False),
    Column(
        "document_id",
        UUIDColumnType,
        ForeignKey("document.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("field_name", String, nullable=False),
    Column("kind", Enum(IssueKind, native_enum=False), nullable=False),
    Column("priority", Integer, nullable=False),
    Column("reason", Text, nullable=False),
    Column("extracted_value", FieldValueType(), nullable=False),
    Column("confidence", Float, nullable=True),
    Column("suggested_values", FieldValueTupleType(), nullable=False),
    Column("benchmark_range", BenchmarkRangeType(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("status", Enum(IssueStatus, native_enum=False), nullable=False),
    Column("resolved_value", FieldValueType(), nullable=True),
    Column("resolved_by", String, nullable=True),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("resolution_notes", Text, nullable=True),
    UniqueConstraint("case_id", "document_id", "field_name", "kind", name="uq_issue_key"),
    Index("ix_issue_case_status", "case_id", "status"),
)

conflict_table = Table(
    "conflict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("case_id", UUIDColumnType, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False),
    Column("field_name", String, nullable=False),
    Column(
        "document1_id",
        UUIDColumnType,
        ForeignKey("document.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "document2_id",
        UUIDColumnType,
        ForeignKey("document.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("value1", FieldValueType(), nullable=False),
    Column("value2", FieldValueType(), nullable=False),
    Column("variance", Float, nullable=False),
    Column("severity", Enum(ConflictSeverity, native_enum=False), nullable=False),
    Column(
        "suggested_resolution",
        Enum(SuggestedResolution, native_enum=False),
        nullable=False,
    ),
    Column("reasoning", Text, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("resolution", Enum(ConflictResolution, native_enum=False), nullable=False),
    Column("resolved_value", FieldValueType(), nullable=True),
    Column("resolved_by", String, nullable=True),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("rationale", Text, nullable=True),
    UniqueConstraint(
        "case_id", "field_name", "document1_id", "document2_id", name="uq_conflict_pair"
    ),
    Index("ix_conflict_case_resolution", "case_id", "resolution"),
)

# natural keys used by insert-if-absent
ISSUE_KEY_COLUMNS = ("case_id", "document_id", "field_name", "kind")
CONFLICT_KEY_COLUMNS = ("case_id", "field_name", "document1_id", "document2_id")


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Case, case_table)
    mapper_registry.map_imperatively(Document, document_table)
    mapper_registry.map_imperatively(ExtractedField, extracted_field_table)
    mapper_registry.map_imperatively(Issue, issue_table)
    mapper_registry.map_imperatively(Conflict, conflict_table)

    configure_mappers()
    return mapper_registry

