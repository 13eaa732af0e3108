from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest

from fieldwise.adapters.sqlalchemy import (
    SqlAlchemyCaseRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyDocumentRepository,
    SqlAlchemyExtractedFieldRepository,
    SqlAlchemyIssueRepository,
)
from fieldwise.domain.model import (
    MISSING,
    BenchmarkRange,
    Case,
    Conflict,
    ConflictResolution,
    ConflictSeverity,
    Document,
    ExtractedField,
    Issue,
    IssueKind,
    IssueStatus,
    Number,
    SuggestedResolution,
    Text,
)
from tests.helpers.clarification import make_case, make_document

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


@pytest.fixture
def case(sqlite_session: Session) -> Case:
    case = make_case(state="tx")
    SqlAlchemyCaseRepository(sqlite_session).add(case)
    sqlite_session.commit()
    return case


@pytest.fixture
def documents(sqlite_session: Session, case: Case) -> list[Document]:
    repository = SqlAlchemyDocumentRepository(sqlite_session)
    created = [
        make_document(case, "t12.pdf", minutes=0, period_end=date(2025, 12, 31)),
        make_document(case, "om.pdf", minutes=10),
        make_document(case, "rent-roll.xlsx", minutes=5),
    ]
    for document in created:
        repository.add(document)
    sqlite_session.commit()
    return created


def _issue(case: Case, document: Document, kind: IssueKind, *, priority: int = 5) -> Issue:
    return Issue(
        case_id=case.id,
        document_id=document.id,
        field_name="noi",
        kind=kind,
        priority=priority,
        reason=f"{kind} on noi",
        extracted_value=Number(1_000.0),
        suggested_values=(Number(950.0), Text("n/a")),
    )


def _conflict(case: Case, first: Document, second: Document) -> Conflict:
    low, high = sorted((first, second), key=lambda document: document.id.int)
    return Conflict(
        case_id=case.id,
        field_name="noi",
        document1_id=low.id,
        document2_id=high.id,
        value1=Number(100.0),
        value2=Number(150.0),
        variance=0.4,
        severity=ConflictSeverity.CRITICAL,
        suggested_resolution=SuggestedResolution.MANUAL_REVIEW,
        reasoning="Large variance (40.0%) requires manual review",
    )


def test_case_state_roundtrip(sqlite_session: Session, case: Case) -> None:
    case.recompute_unresolved(pending_exists=True)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = SqlAlchemyCaseRepository(sqlite_session).get(case.id)

    assert loaded is not None
    assert loaded is not case
    assert loaded.state == "TX"
    assert loaded.facility_type == case.facility_type
    assert loaded.has_unresolved_conflicts is True
    assert loaded.created_at == case.created_at


def test_documents_listed_newest_first(
    sqlite_session: Session, case: Case, documents: list[Document]
) -> None:
    repository = SqlAlchemyDocumentRepository(sqlite_session)
    t12, om, rent_roll = documents

    assert repository.list_for_case(case.id) == [om, rent_roll, t12]
    assert repository.list_for_case(case.id, exclude=om.id) == [rent_roll, t12]
    assert repository.list_for_case(case.id, limit=1) == [om]


def test_field_values_roundtrip_by_revision(
    sqlite_session: Session, documents: list[Document]
) -> None:
    document = documents[0]
    repository = SqlAlchemyExtractedFieldRepository(sqlite_session)
    repository.add_many(
        [
            ExtractedField(
                document_id=document.id,
                field_name="noi",
                value=Number(1_200_000.0),
                confidence=88.5,
                alternatives=(Number(1_150_000.0), MISSING),
            ),
            ExtractedField(document_id=document.id, field_name="operatorName", value=Text("Acme")),
            ExtractedField(document_id=document.id, field_name="licensedBeds", value=MISSING),
            ExtractedField(
                document_id=document.id, field_name="noi", value=Number(1.0), revision=2
            ),
        ]
    )
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = {field.field_name: field for field in repository.for_document(document.id, revision=1)}

    assert set(loaded) == {"licensedBeds", "noi", "operatorName"}
    assert loaded["noi"].value == Number(1_200_000.0)
    assert loaded["noi"].confidence == 88.5
    assert loaded["noi"].alternatives == (Number(1_150_000.0), MISSING)
    assert loaded["operatorName"].value == Text("Acme")
    assert loaded["licensedBeds"].value == MISSING
    assert [f.value for f in repository.for_document(document.id, revision=2)] == [Number(1.0)]


def test_issue_insert_is_idempotent_on_key(
    sqlite_session: Session, case: Case, documents: list[Document]
) -> None:
    repository = SqlAlchemyIssueRepository(sqlite_session)
    issue = _issue(case, documents[0], IssueKind.OUT_OF_RANGE)
    issue.benchmark_range = BenchmarkRange(min=1.0, median=2.0, max=3.0, unit="hours")

    assert repository.add_if_absent(issue) is True
    assert repository.add_if_absent(_issue(case, documents[0], IssueKind.OUT_OF_RANGE)) is False
    assert repository.add_if_absent(_issue(case, documents[0], IssueKind.CONFLICT)) is True
    sqlite_session.commit()

    stored = repository.get(issue.id)
    assert stored is not None
    assert stored.status == IssueStatus.PENDING
    assert stored.suggested_values == (Number(950.0), Text("n/a"))
    assert stored.benchmark_range == issue.benchmark_range
    assert len(repository.list_for_case(case.id)) == 2


def test_issue_listing_and_pending_checks(
    sqlite_session: Session, case: Case, documents: list[Document]
) -> None:
    repository = SqlAlchemyIssueRepository(sqlite_session)
    low = _issue(case, documents[0], IssueKind.LOW_CONFIDENCE, priority=3)
    high = _issue(case, documents[0], IssueKind.MISSING, priority=10)
    high.created_at = low.created_at + timedelta(seconds=1)
    for issue in (low, high):
        repository.add(issue)
    sqlite_session.commit()

    assert [issue.id for issue in repository.list_for_case(case.id)] == [high.id, low.id]
    assert repository.has_pending(case.id) is True

    high.resolve(IssueStatus.RESOLVED, resolved_by="analyst", resolved_value=Number(1.0))
    low.resolve(IssueStatus.IGNORED, resolved_by="analyst")
    sqlite_session.commit()

    assert repository.list_for_case(case.id, pending_only=True) == []
    assert repository.list_pending(document_id=documents[0].id) == []
    assert repository.has_pending(case.id) is False


def test_conflict_insert_is_idempotent_and_findable(
    sqlite_session: Session, case: Case, documents: list[Document]
) -> None:
    repository = SqlAlchemyConflictRepository(sqlite_session)
    conflict = _conflict(case, documents[0], documents[1])

    assert repository.add_if_absent(conflict) is True
    duplicate = _conflict(case, documents[1], documents[0])
    assert repository.add_if_absent(duplicate) is False
    sqlite_session.commit()

    found = repository.find(duplicate.key)
    assert found is not None
    assert found.id == conflict.id
    assert found.value2 == Number(150.0)
    assert [c.id for c in repository.list_for_case(case.id)] == [conflict.id]


def test_conflict_pending_checks_follow_resolution(
    sqlite_session: Session, case: Case, documents: list[Document]
) -> None:
    repository = SqlAlchemyConflictRepository(sqlite_session)
    t12, om, rent_roll = documents
    repository.add(_conflict(case, t12, om))
    sqlite_session.commit()

    assert repository.has_pending(case.id) is True
    assert repository.has_pending_for(document_id=om.id, field_name="noi") is True
    assert repository.has_pending_for(document_id=om.id, field_name="ebitda") is False
    assert repository.has_pending_for(document_id=rent_roll.id, field_name="noi") is False

    (stored,) = repository.list_for_case(case.id, pending_only=True)
    stored.resolve(ConflictResolution.USE_FIRST, resolved_by="analyst", resolved_value=Number(1.0))
    sqlite_session.commit()

    assert repository.has_pending(case.id) is False
    assert repository.list_for_case(case.id, pending_only=True) == []
