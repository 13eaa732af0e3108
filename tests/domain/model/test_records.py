from __future__ import annotations

from uuid import uuid4

import pytest

from fieldwise.domain.errors import InvalidTransitionError
from fieldwise.domain.model import (
    MAX_PRIORITY,
    Conflict,
    ConflictResolution,
    ConflictSeverity,
    Issue,
    IssueKind,
    IssueStatus,
    Number,
    SuggestedResolution,
)


def _issue(**overrides: object) -> Issue:
    values: dict[str, object] = {
        "case_id": uuid4(),
        "document_id": uuid4(),
        "field_name": "noi",
        "kind": IssueKind.LOW_CONFIDENCE,
        "priority": 5,
        "reason": "low",
    }
    values.update(overrides)
    return Issue(**values)  # pyright: ignore[reportArgumentType]


def _conflict() -> Conflict:
    return Conflict(
        case_id=uuid4(),
        field_name="noi",
        document1_id=uuid4(),
        document2_id=uuid4(),
        value1=Number(1.0),
        value2=Number(2.0),
        variance=0.67,
        severity=ConflictSeverity.CRITICAL,
        suggested_resolution=SuggestedResolution.MANUAL_REVIEW,
    )


@pytest.mark.parametrize("priority", [-1, MAX_PRIORITY + 1])
def test_issue_priority_is_bounded(priority: int) -> None:
    with pytest.raises(ValueError, match="priority"):
        _issue(priority=priority)


def test_issue_moves_to_one_terminal_state() -> None:
    issue = _issue()

    issue.resolve(IssueStatus.IGNORED, resolved_by="analyst", notes="known gap")

    assert issue.status == IssueStatus.IGNORED
    assert issue.resolved_by == "analyst"
    assert issue.resolution_notes == "known gap"
    assert issue.resolved_at is not None
    with pytest.raises(InvalidTransitionError):
        issue.resolve(IssueStatus.RESOLVED, resolved_by="analyst")


def test_issue_key_identifies_document_field_and_kind() -> None:
    issue = _issue()

    assert issue.key == (issue.case_id, issue.document_id, "noi", IssueKind.LOW_CONFIDENCE)


def test_conflict_requires_distinct_documents() -> None:
    document_id = uuid4()

    with pytest.raises(ValueError, match="distinct"):
        Conflict(
            case_id=uuid4(),
            field_name="noi",
            document1_id=document_id,
            document2_id=document_id,
            value1=Number(1.0),
            value2=Number(2.0),
            variance=0.67,
            severity=ConflictSeverity.CRITICAL,
            suggested_resolution=SuggestedResolution.MANUAL_REVIEW,
        )


def test_conflict_resolution_is_final() -> None:
    conflict = _conflict()

    with pytest.raises(InvalidTransitionError):
        conflict.resolve(ConflictResolution.PENDING, resolved_by="analyst")

    conflict.resolve(
        ConflictResolution.USE_SECOND,
        resolved_by="analyst",
        resolved_value=Number(2.0),
        rationale="audited",
    )

    assert not conflict.is_pending
    assert conflict.resolved_value == Number(2.0)
    assert conflict.rationale == "audited"
    with pytest.raises(InvalidTransitionError):
        conflict.resolve(ConflictResolution.IGNORED, resolved_by="analyst")


def test_conflict_helpers() -> None:
    conflict = _conflict()

    assert conflict.key == (
        conflict.case_id,
        "noi",
        conflict.document1_id,
        conflict.document2_id,
    )
    assert conflict.involves(conflict.document2_id)
    assert not conflict.involves(uuid4())
    assert conflict.variance_percent == pytest.approx(67.0)
