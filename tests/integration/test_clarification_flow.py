from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from fieldwise import app
from fieldwise.config import ClarificationConfig
from fieldwise.domain.errors import NotFoundError
from fieldwise.domain.model import (
    ConflictResolution,
    ConflictSeverity,
    IssueKind,
    IssueStatus,
    Number,
    SuggestedResolution,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from fieldwise.adapters.sqlalchemy import SqlAlchemyClarificationUnitOfWork

type UowFactory = Callable[[], SqlAlchemyClarificationUnitOfWork]

DOC2_ID = uuid4()

T12_PAYLOAD = {
    "document": {"filename": "t12.pdf", "type": "T12"},
    "fields": {
        "totalRevenue": {"value": "$12,000,000", "confidence": 92},
        "occupancyRate": {"value": 0.85, "confidence": 97},
        "licensedBeds": None,
    },
}

OM_PAYLOAD = {
    "document": {"id": str(DOC2_ID), "filename": "om.pdf", "type": "OM"},
    "fields": {
        "totalRevenue": {"value": 13_500_000, "confidence": 90},
        "occupancyRate": {"value": "0.86", "confidence": 95},
        "licensedBeds": {"value": 120, "confidence": 99},
    },
}


def test_document_conflict_lifecycle(sqlite_unit_of_work: UowFactory) -> None:
    config = ClarificationConfig()
    case = app.create_case(
        name="Sunrise Care",
        facility_type="SNF",
        state="ca",
        unit_of_work_factory=sqlite_unit_of_work,
    )

    first = app.ingest_document(
        case.id, T12_PAYLOAD, config=config, unit_of_work_factory=sqlite_unit_of_work
    )
    assert [issue.kind for issue in first.issues_created] == [IssueKind.MISSING]
    assert first.conflicts_created == []

    second = app.ingest_document(
        case.id, OM_PAYLOAD, config=config, unit_of_work_factory=sqlite_unit_of_work
    )
    assert second.document_id == DOC2_ID
    (created,) = second.conflicts_created
    assert created.field_name == "totalRevenue"
    assert created.severity == ConflictSeverity.HIGH
    assert created.suggested_resolution == SuggestedResolution.USE_AVERAGE
    assert [issue.kind for issue in second.issues_created] == [IssueKind.CONFLICT]
    assert second.has_unresolved_conflicts is True

    (pending,) = app.list_conflicts(
        case.id, pending_only=True, unit_of_work_factory=sqlite_unit_of_work
    )
    resolved = app.settle_conflict(
        pending.id,
        "use_average",
        resolved_by="analyst@example.com",
        rationale="Both figures are trailing twelve months",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    assert resolved.resolution == ConflictResolution.USE_AVERAGE
    assert resolved.resolved_value == Number(12_750_000.0)

    (missing,) = app.list_issues(
        case.id, pending_only=True, unit_of_work_factory=sqlite_unit_of_work
    )
    assert missing.field_name == "licensedBeds"
    settled = app.settle_issue(
        missing.id,
        "resolved",
        resolved_by="analyst@example.com",
        value="120",
        unit_of_work_factory=sqlite_unit_of_work,
    )
    assert settled.resolved_value == Number(120.0)

    issues = app.list_issues(case.id, unit_of_work_factory=sqlite_unit_of_work)
    assert {issue.status for issue in issues} == {IssueStatus.RESOLVED}

    analysis = app.analyze(case.id, config=config, unit_of_work_factory=sqlite_unit_of_work)
    assert analysis.has_unresolved_conflicts is False
    assert [conflict.id for conflict in analysis.conflicts] == [pending.id]
    assert analysis.analyzed_fields == 3
    assert analysis.consistency_score == 67

    with sqlite_unit_of_work() as uow:
        stored_case = uow.repositories.cases.get(case.id)
        assert stored_case is not None
        assert stored_case.has_unresolved_conflicts is False
        om = uow.repositories.documents.get(DOC2_ID)
        assert om is not None
        assert om.pending_issue_count == 0


def test_reingesting_a_document_adds_a_revision_only(sqlite_unit_of_work: UowFactory) -> None:
    config = ClarificationConfig()
    case = app.create_case(name="Oak Grove", unit_of_work_factory=sqlite_unit_of_work)
    for payload in (T12_PAYLOAD, OM_PAYLOAD):
        app.ingest_document(
            case.id, payload, config=config, unit_of_work_factory=sqlite_unit_of_work
        )

    again = app.ingest_document(
        case.id, OM_PAYLOAD, config=config, unit_of_work_factory=sqlite_unit_of_work
    )

    assert again.revision == 2
    assert again.conflicts_created == []
    assert again.issues_created == []
    assert len(app.list_conflicts(case.id, unit_of_work_factory=sqlite_unit_of_work)) == 1
    assert len(app.list_issues(case.id, unit_of_work_factory=sqlite_unit_of_work)) == 2


def test_reconcile_fields_weights_by_confidence(sqlite_unit_of_work: UowFactory) -> None:
    config = ClarificationConfig()
    case = app.create_case(name="Maple", unit_of_work_factory=sqlite_unit_of_work)
    for payload in (T12_PAYLOAD, OM_PAYLOAD):
        app.ingest_document(
            case.id, payload, config=config, unit_of_work_factory=sqlite_unit_of_work
        )

    reconciled = app.reconcile_fields(
        case.id, ["totalRevenue"], config=config, unit_of_work_factory=sqlite_unit_of_work
    )

    assert set(reconciled) == {"totalRevenue"}
    value = reconciled["totalRevenue"].reconciled_value
    assert isinstance(value, Number)
    assert value.value == pytest.approx((12_000_000 * 92 + 13_500_000 * 90) / 182)
    assert len(reconciled["totalRevenue"].sources) == 2


def test_unknown_case_is_reported(sqlite_unit_of_work: UowFactory) -> None:
    with pytest.raises(NotFoundError):
        app.list_issues(uuid4(), unit_of_work_factory=sqlite_unit_of_work)
    with pytest.raises(NotFoundError):
        app.ingest_document(uuid4(), T12_PAYLOAD, unit_of_work_factory=sqlite_unit_of_work)


def test_blank_case_name_is_rejected(sqlite_unit_of_work: UowFactory) -> None:
    with pytest.raises(ValueError, match="blank"):
        app.create_case(name="  ", unit_of_work_factory=sqlite_unit_of_work)
