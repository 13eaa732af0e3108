"""Translate extraction payloads into domain entities."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from fieldwise.domain.model import Document, ExtractedField
from fieldwise.domain.reconciliation.normalize import try_normalize

from .schema import ExtractionPayload, ExtractionPayloadInput

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.domain.model import FieldValue

    from .schema import DocumentPayload, FieldPayload

log = getLogger(__name__)


def _ensure_payload(payload: ExtractionPayloadInput) -> ExtractionPayload:
    if isinstance(payload, ExtractionPayload):
        return payload
    return ExtractionPayload.model_validate(payload)


def parse_extraction(
    payload: ExtractionPayloadInput,
    *,
    case_id: UUID,
) -> tuple[Document, dict[str, ExtractedField]]:
    """Return the document and its extracted fields, keyed by field name.

    A field whose value cannot be normalized is left out with a warning rather
    than failing the whole payload.
    """

    parsed = _ensure_payload(payload)
    document = _build_document(parsed.document, case_id=case_id)
    fields: dict[str, ExtractedField] = {}
    for name, field_payload in parsed.fields.items():
        extracted = _build_field(name, field_payload, document_id=document.id)
        if extracted is None:
            log.warning(
                "Skipping %s in %s: value %r is not comparable",
                name,
                document.filename,
                field_payload.value,
            )
            continue
        fields[name] = extracted
    return document, fields


def _build_document(payload: DocumentPayload, *, case_id: UUID) -> Document:
    document = Document(
        case_id=case_id,
        filename=payload.filename,
        document_type=payload.document_type,
        period_end=payload.period_end,
    )
    if payload.id is not None:
        document.id = payload.id
    return document


def _build_field(
    name: str,
    payload: FieldPayload,
    *,
    document_id: UUID,
) -> ExtractedField | None:
    value = try_normalize(payload.value, field_name=name)
    if value is None:
        return None
    alternatives: list[FieldValue] = []
    for raw in payload.alternatives:
        alternative = try_normalize(raw, field_name=name)
        if alternative is not None:
            alternatives.append(alternative)
    return ExtractedField(
        document_id=document_id,
        field_name=name,
        value=value,
        confidence=payload.confidence,
        alternatives=tuple(alternatives),
        source=payload.source,
    )
