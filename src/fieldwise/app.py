"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from fieldwise.adapters.benchmarks import StaticBenchmarkProvider
from fieldwise.adapters.extraction import parse_extraction
from fieldwise.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClarificationUnitOfWork,
    is_started,
    startup,
)
from fieldwise.config import get_clarification_config
from fieldwise.domain.errors import NotFoundError
from fieldwise.domain.model import Case, EntityType, FacilityType
from fieldwise.domain.ports.unit_of_work import ClarificationUnitOfWork
from fieldwise.domain.reconciliation import (
    CaseOrchestrator,
    analyze_case,
    normalize_value,
    resolve_conflict,
    resolve_issue,
)

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.adapters.extraction import ExtractionPayloadInput
    from fieldwise.config import ClarificationConfig
    from fieldwise.domain.model import Conflict, ConflictResolution, Issue, IssueStatus
    from fieldwise.domain.ports import BenchmarkProvider
    from fieldwise.domain.reconciliation import (
        CaseAnalysis,
        DocumentProcessingResult,
        ReconciledField,
    )

UnitOfWorkFactory = Callable[[], ClarificationUnitOfWork]


log = getLogger(__name__)


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyClarificationUnitOfWork


def create_case(
    *,
    name: str,
    facility_type: FacilityType | str = FacilityType.SNF,
    state: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Case:
    """Create and persist a new case."""

    if not name.strip():
        raise ValueError("Case name must not be blank")
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    case = Case(name=name.strip(), facility_type=FacilityType(facility_type), state=state)
    with effective_uow() as uow:
        uow.repositories.cases.add(case)
        uow.commit()
    log.info("Created case %s (%s, %s)", case.id, case.facility_type, case.state or "-")
    return case


def ingest_document(
    case_id: UUID,
    payload: ExtractionPayloadInput,
    *,
    config: ClarificationConfig | None = None,
    benchmarks: BenchmarkProvider | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DocumentProcessingResult:
    """Parse an extraction payload and run the clarification pass for it."""

    document, fields = parse_extraction(payload, case_id=case_id)
    orchestrator = CaseOrchestrator(
        config=config or get_clarification_config(),
        benchmarks=benchmarks or StaticBenchmarkProvider(),
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
    )
    return orchestrator.process_document(case_id, document, fields)


def analyze(
    case_id: UUID,
    *,
    config: ClarificationConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CaseAnalysis:
    return analyze_case(
        case_id,
        config=config or get_clarification_config(),
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
    )


def reconcile_fields(
    case_id: UUID,
    field_names: list[str] | None = None,
    *,
    config: ClarificationConfig | None = None,
    benchmarks: BenchmarkProvider | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> dict[str, ReconciledField]:
    orchestrator = CaseOrchestrator(
        config=config or get_clarification_config(),
        benchmarks=benchmarks or StaticBenchmarkProvider(),
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
    )
    return orchestrator.reconcile_case(case_id, field_names or None)


def list_conflicts(
    case_id: UUID,
    *,
    pending_only: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Conflict]:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        _require_case(uow, case_id)
        return uow.repositories.conflicts.list_for_case(case_id, pending_only=pending_only)


def list_issues(
    case_id: UUID,
    *,
    pending_only: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[Issue]:
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    with effective_uow() as uow:
        _require_case(uow, case_id)
        return uow.repositories.issues.list_for_case(case_id, pending_only=pending_only)


def settle_conflict(
    conflict_id: UUID,
    resolution: ConflictResolution | str,
    *,
    resolved_by: str,
    value: object | None = None,
    rationale: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Conflict:
    """Resolve a conflict; ``value`` is a raw user entry such as ``"$1,200,000"``."""

    return resolve_conflict(
        conflict_id,
        resolution,  # pyright: ignore[reportArgumentType]
        resolved_by=resolved_by,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        resolved_value=normalize_value(value) if value is not None else None,
        rationale=rationale,
    )


def settle_issue(
    issue_id: UUID,
    status: IssueStatus | str,
    *,
    resolved_by: str,
    value: object | None = None,
    notes: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Issue:
    return resolve_issue(
        issue_id,
        status,  # pyright: ignore[reportArgumentType]
        resolved_by=resolved_by,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        resolved_value=normalize_value(value) if value is not None else None,
        notes=notes,
    )


def _require_case(uow: ClarificationUnitOfWork, case_id: UUID) -> Case:
    case = uow.repositories.cases.get(case_id)
    if case is None:
        raise NotFoundError(EntityType.CASE, case_id)
    return case
