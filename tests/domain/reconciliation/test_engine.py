from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from fieldwise.config import ClarificationConfig
from fieldwise.domain.errors import NotFoundError
from fieldwise.domain.model import (
    BenchmarkRange,
    ConflictResolution,
    ConflictSeverity,
    IssueKind,
    IssueStatus,
    Number,
    SuggestedResolution,
)
from fieldwise.domain.reconciliation import CaseOrchestrator
from fieldwise.domain.reconciliation.engine import ordered_pair
from tests.helpers.clarification import (
    FakeBenchmarkProvider,
    FakeUnitOfWork,
    make_case,
    make_document,
    make_fields,
    observation,
)

if TYPE_CHECKING:
    from fieldwise.domain.model import Case, Issue

type Seeded = tuple[FakeUnitOfWork, Case]


def _orchestrator(
    uow: FakeUnitOfWork,
    *,
    config: ClarificationConfig | None = None,
    benchmarks: FakeBenchmarkProvider | None = None,
) -> CaseOrchestrator:
    return CaseOrchestrator(
        config=config or ClarificationConfig(),
        benchmarks=benchmarks or FakeBenchmarkProvider(),
        unit_of_work_factory=lambda: uow,
    )


@pytest.fixture
def seeded(fake_uow: FakeUnitOfWork) -> Seeded:
    case = make_case(state="ca")
    fake_uow.repositories.cases.add(case)
    return fake_uow, case


def test_first_document_is_evaluated_without_conflicts(seeded: Seeded) -> None:
    uow, case = seeded
    document = make_document(case, "t12.pdf")

    result = _orchestrator(uow).process_document(
        case.id,
        document,
        make_fields({"totalRevenue": 1_000_000, "licensedBeds": None}),
    )

    assert result.revision == 1
    assert result.conflicts_created == []
    assert [issue.kind for issue in result.issues_created] == [IssueKind.MISSING]
    assert result.has_unresolved_conflicts is True
    assert case.has_unresolved_conflicts is True
    assert document.pending_issue_count == 1
    assert document.overall_confidence == pytest.approx(90.0)
    assert uow.commits == 1


def test_second_document_raises_conflict_and_conflict_issue(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    first = make_document(case, "t12.pdf", minutes=0)
    second = make_document(case, "om.pdf", minutes=5)

    orchestrator.process_document(case.id, first, make_fields({"totalRevenue": 1_000_000}))
    result = orchestrator.process_document(
        case.id, second, make_fields({"totalRevenue": "$1,150,000"})
    )

    assert len(result.conflicts_created) == 1
    conflict = result.conflicts_created[0]
    assert conflict.severity == ConflictSeverity.HIGH
    assert conflict.suggested_resolution == SuggestedResolution.USE_AVERAGE
    assert {conflict.value1, conflict.value2} == {Number(1_000_000.0), Number(1_150_000.0)}
    assert conflict.document1_id.int < conflict.document2_id.int

    (issue,) = result.issues_created
    assert issue.kind == IssueKind.CONFLICT
    assert issue.document_id == second.id
    assert issue.priority == 10
    assert issue.reason.startswith("Value differs from t12.pdf by 14.0%")
    assert Number(1_075_000.0) in issue.suggested_values

    reconciled = result.reconciled["totalRevenue"]
    assert len(reconciled.sources) == 2
    assert reconciled.reconciled_value == Number(1_075_000.0)
    assert result.has_unresolved_conflicts is True


def test_reprocessing_is_idempotent(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    first = make_document(case, "t12.pdf", minutes=0)
    second = make_document(case, "om.pdf", minutes=5)
    orchestrator.process_document(case.id, first, make_fields({"totalRevenue": 1_000_000}))
    orchestrator.process_document(case.id, second, make_fields({"totalRevenue": 1_150_000}))

    again = orchestrator.process_document(
        case.id, second, make_fields({"totalRevenue": 1_150_000})
    )

    assert again.revision == 2
    assert again.conflicts_created == []
    assert again.issues_created == []
    assert len(uow.store.conflicts) == 1
    assert len(uow.store.issues) == 1


def test_only_current_revision_is_compared(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    first = make_document(case, "t12.pdf", minutes=0)
    second = make_document(case, "om.pdf", minutes=5)
    orchestrator.process_document(case.id, first, make_fields({"noi": 100_000}))
    orchestrator.process_document(case.id, first, make_fields({"noi": 200_000}))

    result = orchestrator.process_document(case.id, second, make_fields({"noi": 200_000}))

    assert result.conflicts_created == []
    assert result.reconciled["noi"].reconciled_value == Number(200_000.0)


def test_comparison_window_is_bounded_to_newest_documents(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow, config=ClarificationConfig(max_compared_documents=1))
    oldest = make_document(case, "a.pdf", minutes=0)
    newer = make_document(case, "b.pdf", minutes=5)
    latest = make_document(case, "c.pdf", minutes=10)
    orchestrator.process_document(case.id, oldest, make_fields({"noi": 100_000}))
    orchestrator.process_document(case.id, newer, make_fields({"noi": 100_000}))

    result = orchestrator.process_document(case.id, latest, make_fields({"noi": 150_000}))

    assert len(result.conflicts_created) == 1
    assert result.conflicts_created[0].involves(newer.id)
    assert len(result.reconciled["noi"].sources) == 3


def test_out_of_range_uses_case_benchmarks(seeded: Seeded) -> None:
    uow, case = seeded
    benchmarks = FakeBenchmarkProvider(
        {"hppd": BenchmarkRange(min=3.0, median=4.0, max=5.5, unit="hours")}
    )

    result = _orchestrator(uow, benchmarks=benchmarks).process_document(
        case.id, make_document(case), make_fields({"hppd": 8.0})
    )

    assert [issue.kind for issue in result.issues_created] == [IssueKind.OUT_OF_RANGE]
    assert benchmarks.calls == [(case.facility_type, "CA")]


def test_unknown_case_is_rejected(fake_uow: FakeUnitOfWork) -> None:
    case = make_case()

    with pytest.raises(NotFoundError):
        _orchestrator(fake_uow).process_document(
            case.id, make_document(case), make_fields({"noi": 1})
        )
    assert fake_uow.commits == 0
    assert fake_uow.rollbacks == 1


def test_document_from_another_case_is_rejected(seeded: Seeded) -> None:
    uow, case = seeded
    foreign = make_document(make_case("Other"))

    with pytest.raises(ValueError, match="belongs to case"):
        _orchestrator(uow).process_document(case.id, foreign, make_fields({"noi": 1}))


def test_field_keyed_under_wrong_name_is_rejected(seeded: Seeded) -> None:
    uow, case = seeded
    fields = make_fields({"noi": 1})

    with pytest.raises(ValueError, match="is named"):
        _orchestrator(uow).process_document(case.id, make_document(case), {"ebitda": fields["noi"]})


def test_reconcile_case_covers_every_field(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    orchestrator.process_document(
        case.id, make_document(case, "a.pdf"), make_fields({"noi": 100, "operatorName": "Acme"})
    )
    orchestrator.process_document(
        case.id, make_document(case, "b.pdf", minutes=1), make_fields({"noi": 104})
    )

    reconciled = orchestrator.reconcile_case(case.id)

    assert set(reconciled) == {"noi", "operatorName"}
    assert len(reconciled["noi"].sources) == 2
    assert set(orchestrator.reconcile_case(case.id, ["noi"])) == {"noi"}


def test_ordered_pair_puts_lower_document_id_first() -> None:
    low, high = sorted((uuid4(), uuid4()), key=lambda value: value.int)
    first, second = observation(high, 1), observation(low, 2)

    assert ordered_pair(first, second) == (second, first)
    assert ordered_pair(second, first) == (second, first)


def test_caller_fields_are_copied_not_restamped(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    document = make_document(case)
    fields = make_fields({"totalRevenue": 1_000_000})
    supplied = fields["totalRevenue"]
    supplied_document_id = supplied.document_id

    orchestrator.process_document(case.id, document, fields)
    orchestrator.process_document(case.id, document, fields)

    assert supplied.revision == 1
    assert supplied.document_id == supplied_document_id
    (first,) = uow.repositories.fields.for_document(document.id, revision=1)
    (second,) = uow.repositories.fields.for_document(document.id, revision=2)
    assert first is not supplied
    assert first.id != second.id


def test_every_write_runs_in_its_own_savepoint(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    orchestrator.process_document(
        case.id, make_document(case, "t12.pdf"), make_fields({"noi": 100_000, "hppd": 4.0})
    )

    orchestrator.process_document(
        case.id,
        make_document(case, "om.pdf", minutes=5),
        make_fields({"noi": 150_000, "licensedBeds": None, "hppd": 4.0}),
    )

    # one missing issue, then one savepoint per shared field
    assert uow.savepoints == 3


def test_failed_issue_write_does_not_stop_the_pass(
    seeded: Seeded, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    uow, case = seeded
    issues = uow.repositories.issues
    record = issues.add_if_absent

    def add_if_absent(issue: Issue) -> bool:
        if issue.field_name == "noi":
            raise RuntimeError("disk full")
        return record(issue)

    monkeypatch.setattr(issues, "add_if_absent", add_if_absent)

    result = _orchestrator(uow).process_document(
        case.id, make_document(case), make_fields({"noi": None, "totalRevenue": None})
    )

    assert {issue.field_name for issue in result.issues_created} == {"totalRevenue"}
    assert result.has_unresolved_conflicts is True
    assert uow.commits == 1
    assert "Recording missing issue on noi failed" in caplog.text


def test_changed_values_reopen_a_settled_conflict(seeded: Seeded) -> None:
    uow, case = seeded
    orchestrator = _orchestrator(uow)
    t12 = make_document(case, "t12.pdf")
    om = make_document(case, "om.pdf", minutes=5)
    orchestrator.process_document(case.id, t12, make_fields({"totalRevenue": 1_000_000}))
    (conflict,) = orchestrator.process_document(
        case.id, om, make_fields({"totalRevenue": 1_150_000})
    ).conflicts_created
    conflict.resolve(ConflictResolution.USE_FIRST, resolved_by="analyst")
    for issue in uow.store.issues.values():
        issue.resolve(IssueStatus.RESOLVED, resolved_by="analyst")

    result = orchestrator.process_document(case.id, om, make_fields({"totalRevenue": 3_000_000}))

    assert result.conflicts_created == []
    assert result.conflicts_reopened == [conflict]
    assert conflict.is_pending
    assert conflict.resolved_by is None
    assert Number(3_000_000.0) in (conflict.value1, conflict.value2)
    assert [issue.kind for issue in result.issues_reopened] == [IssueKind.CONFLICT]
    assert result.has_unresolved_conflicts is True
    assert len(uow.store.conflicts) == 1
