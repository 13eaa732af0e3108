from __future__ import annotations

import logging
from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError

from fieldwise.adapters.extraction import ExtractionPayload, parse_extraction
from fieldwise.domain.model import MISSING, Number, Text


def test_parse_extraction_builds_document_and_fields() -> None:
    case_id = uuid4()

    document, fields = parse_extraction(
        {
            "document": {"filename": "t12.pdf", "type": "T12", "periodEnd": "2025-12-31"},
            "fields": {
                "totalRevenue": {
                    "value": "$1,200,000",
                    "confidence": 92,
                    "alternatives": ["1,150,000", None],
                    "source": "page 3",
                },
                "operatorName": "Acme Health",
                "licensedBeds": None,
            },
        },
        case_id=case_id,
    )

    assert document.case_id == case_id
    assert document.document_type == "T12"
    assert document.period_end == date(2025, 12, 31)
    revenue = fields["totalRevenue"]
    assert revenue.document_id == document.id
    assert revenue.value == Number(1_200_000.0)
    assert revenue.confidence == 92
    assert revenue.alternatives == (Number(1_150_000.0), MISSING)
    assert revenue.source == "page 3"
    assert fields["operatorName"].value == Text("Acme Health")
    assert fields["operatorName"].confidence is None
    assert fields["licensedBeds"].value is MISSING


def test_unparsable_fields_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    _, fields = parse_extraction(
        {"document": {"filename": "om.pdf"}, "fields": {"noi": 900_000, "isMedicare": True}},
        case_id=uuid4(),
    )

    assert set(fields) == {"noi"}
    assert "Skipping isMedicare in om.pdf" in caplog.text


def test_explicit_document_id_is_kept() -> None:
    document_id = uuid4()

    document, _ = parse_extraction(
        {"document": {"id": str(document_id), "filename": "rent-roll.xlsx"}, "fields": {}},
        case_id=uuid4(),
    )

    assert document.id == document_id


def test_blank_document_type_is_dropped() -> None:
    payload = ExtractionPayload.model_validate(
        {"document": {"filename": "t12.pdf", "type": "  ", "periodEnd": ""}, "fields": {}}
    )

    assert payload.document.document_type is None
    assert payload.document.period_end is None


@pytest.mark.parametrize(
    "payload",
    [
        {"document": {"filename": "t12.pdf"}, "fields": {" ": 1}},
        {"document": {"filename": "t12.pdf"}, "fields": {"noi": {"value": 1, "confidence": 120}}},
        {"fields": {"noi": 1}},
    ],
)
def test_malformed_payloads_are_rejected(payload: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        parse_extraction(payload, case_id=uuid4())
