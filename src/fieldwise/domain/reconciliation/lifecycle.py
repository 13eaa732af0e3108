"""Clarification lifecycle: resolving issues and conflicts, rolling up the case flag.

Records move ``pending -> terminal`` through an explicit resolution, and back to
``pending`` only when a later detection reports different values for the same
key. The case-level ``has_unresolved_conflicts`` flag is never toggled directly;
every mutation ends with :func:`refresh_case_flag`, which re-reads
pending-record existence.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from fieldwise.config import ValidationError
from fieldwise.domain.errors import NotFoundError
from fieldwise.domain.model import (
    ConflictResolution,
    EntityType,
    IssueKind,
    IssueStatus,
    Number,
    as_float,
)

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.domain.model import Case, Conflict, FieldValue, Issue
    from fieldwise.domain.ports import (
        ClarificationRepositories,
        ClarificationUnitOfWorkFactory,
    )

log = logging.getLogger(__name__)


class RecordOutcome(StrEnum):
    CREATED = "created"
    REOPENED = "reopened"
    REFRESHED = "refreshed"
    UNCHANGED = "unchanged"


def record_issue(
    repositories: ClarificationRepositories,
    issue: Issue,
) -> tuple[Issue, RecordOutcome]:
    """Store ``issue`` under its key, or fold it into the issue already stored there.

    A stored issue with other findings (value or suggestions) takes over the new
    ones and returns to pending; identical findings leave it as it is.
    """

    if repositories.issues.add_if_absent(issue):
        return issue, RecordOutcome.CREATED
    stored = repositories.issues.find(issue.key)
    if stored is None:
        raise NotFoundError(EntityType.ISSUE, issue.id)
    if (stored.extracted_value, stored.suggested_values) == (
        issue.extracted_value,
        issue.suggested_values,
    ):
        return stored, RecordOutcome.UNCHANGED
    outcome = RecordOutcome.REFRESHED if stored.is_pending else RecordOutcome.REOPENED
    stored.reopen(issue)
    log.info("Issue %s on %s %s by new findings", stored.id, stored.field_name, outcome)
    return stored, outcome


def record_conflict(
    repositories: ClarificationRepositories,
    conflict: Conflict,
) -> tuple[Conflict, RecordOutcome]:
    """Store ``conflict`` for its document pair, or update the stored one.

    A resolved conflict whose documents now disagree on other values is reopened.
    """

    if repositories.conflicts.add_if_absent(conflict):
        return conflict, RecordOutcome.CREATED
    stored = repositories.conflicts.find(conflict.key)
    if stored is None:
        raise NotFoundError(EntityType.CONFLICT, conflict.id)
    if (stored.value1, stored.value2) == (conflict.value1, conflict.value2):
        return stored, RecordOutcome.UNCHANGED
    outcome = RecordOutcome.REFRESHED if stored.is_pending else RecordOutcome.REOPENED
    stored.reopen(conflict)
    log.info("Conflict %s on %s %s by new values", stored.id, stored.field_name, outcome)
    return stored, outcome


def refresh_case_flag(repositories: ClarificationRepositories, case: Case) -> bool:
    """Recompute ``case.has_unresolved_conflicts`` from the store and return it."""

    pending = repositories.issues.has_pending(case.id) or repositories.conflicts.has_pending(
        case.id
    )
    if case.recompute_unresolved(pending_exists=pending):
        log.info("Case %s unresolved flag is now %s", case.id, pending)
    return pending


def default_resolved_value(
    conflict: Conflict,
    resolution: ConflictResolution,
) -> FieldValue | None:
    """Value implied by ``resolution`` when the caller supplies none."""

    match resolution:
        case ConflictResolution.USE_FIRST:
            return conflict.value1
        case ConflictResolution.USE_SECOND:
            return conflict.value2
        case ConflictResolution.USE_AVERAGE:
            value1, value2 = as_float(conflict.value1), as_float(conflict.value2)
            if value1 is None or value2 is None:
                raise ValidationError("use_average requires two numeric values")
            return Number((value1 + value2) / 2)
        case ConflictResolution.MANUAL_VALUE:
            raise ValidationError("manual_value requires an explicit resolved value")
        case ConflictResolution.IGNORED | ConflictResolution.PENDING:
            return None


def resolve_conflict(
    conflict_id: UUID,
    resolution: ConflictResolution,
    *,
    resolved_by: str,
    unit_of_work_factory: ClarificationUnitOfWorkFactory,
    resolved_value: FieldValue | None = None,
    rationale: str | None = None,
) -> Conflict:
    """Resolve one conflict and close the conflict issues it no longer backs.

    Raises:
        NotFoundError: unknown conflict id; nothing is written.
        InvalidTransitionError: the conflict is no longer pending.
        ValidationError: no value can be derived for ``resolution``.
    """

    resolution = ConflictResolution(resolution)
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        conflict = repositories.conflicts.get(conflict_id)
        if conflict is None:
            raise NotFoundError(EntityType.CONFLICT, conflict_id)
        case = _require_case(repositories, conflict.case_id)

        value = resolved_value
        if value is None:
            value = default_resolved_value(conflict, resolution)
        conflict.resolve(
            resolution,
            resolved_by=resolved_by,
            resolved_value=value,
            rationale=rationale,
        )
        _close_conflict_issues(repositories, conflict, resolved_by=resolved_by)
        refresh_case_flag(repositories, case)
        uow.commit()

    log.info(
        "Resolved conflict %s on %s as %s by %s",
        conflict.id,
        conflict.field_name,
        resolution,
        resolved_by,
    )
    return conflict


def resolve_issue(
    issue_id: UUID,
    status: IssueStatus,
    *,
    resolved_by: str,
    unit_of_work_factory: ClarificationUnitOfWorkFactory,
    resolved_value: FieldValue | None = None,
    notes: str | None = None,
) -> Issue:
    """Resolve or ignore one issue.

    Raises:
        NotFoundError: unknown issue id; nothing is written.
        InvalidTransitionError: the issue is no longer pending.
    """

    status = IssueStatus(status)
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        issue = repositories.issues.get(issue_id)
        if issue is None:
            raise NotFoundError(EntityType.ISSUE, issue_id)
        case = _require_case(repositories, issue.case_id)

        issue.resolve(status, resolved_by=resolved_by, resolved_value=resolved_value, notes=notes)
        _refresh_document_counter(repositories, issue.document_id)
        refresh_case_flag(repositories, case)
        uow.commit()

    log.info("Issue %s on %s marked %s by %s", issue.id, issue.field_name, status, resolved_by)
    return issue


def _require_case(repositories: ClarificationRepositories, case_id: UUID) -> Case:
    case = repositories.cases.get(case_id)
    if case is None:
        raise NotFoundError(EntityType.CASE, case_id)
    return case


def _close_conflict_issues(
    repositories: ClarificationRepositories,
    conflict: Conflict,
    *,
    resolved_by: str,
) -> None:
    # a conflict issue stays open while any other pending conflict backs it
    status = (
        IssueStatus.IGNORED
        if conflict.resolution == ConflictResolution.IGNORED
        else IssueStatus.RESOLVED
    )
    for document_id in (conflict.document1_id, conflict.document2_id):
        if repositories.conflicts.has_pending_for(
            document_id=document_id, field_name=conflict.field_name
        ):
            continue
        for issue in repositories.issues.list_pending(
            document_id=document_id, field_name=conflict.field_name
        ):
            if issue.kind != IssueKind.CONFLICT:
                continue
            issue.resolve(
                status,
                resolved_by=resolved_by,
                resolved_value=conflict.resolved_value,
                notes=f"Closed with conflict {conflict.id}",
            )
        _refresh_document_counter(repositories, document_id)


def _refresh_document_counter(repositories: ClarificationRepositories, document_id: UUID) -> None:
    document = repositories.documents.get(document_id)
    if document is None:
        return
    document.pending_issue_count = len(repositories.issues.list_pending(document_id=document_id))
