from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv

from fieldwise.app import (
    analyze,
    create_case,
    ingest_document,
    list_conflicts,
    list_issues,
    reconcile_fields,
    settle_conflict,
    settle_issue,
)
from fieldwise.config import ConfigurationError, configure_logging
from fieldwise.domain.model import (
    ConflictResolution,
    FacilityType,
    IssueStatus,
    render,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from fieldwise.domain.model import Conflict, Issue
    from fieldwise.domain.reconciliation import ReconciledField

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile extracted deal document fields")
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level name, e.g. DEBUG (default: FIELDWISE_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    case = subparsers.add_parser("case", help="Case management commands")
    case_sub = case.add_subparsers(dest="case_command", required=True)
    case_create = case_sub.add_parser("create", help="Create a case")
    case_create.add_argument("--name", type=str, required=True, help="Deal name")
    case_create.add_argument(
        "--facility-type",
        type=str,
        choices=[facility.value for facility in FacilityType],
        default=FacilityType.SNF.value,
        help="Facility category used to pick benchmark ranges (default: %(default)s)",
    )
    case_create.add_argument(
        "--state",
        type=str,
        help="Two-letter state code for regional benchmark adjustments",
    )

    ingest = subparsers.add_parser("ingest", help="Process an extraction payload")
    ingest.add_argument("--case-id", type=str, required=True, help="Case to attach to")
    ingest.add_argument(
        "payload",
        type=str,
        help="Path to the extraction JSON payload, or '-' to read stdin",
    )

    analyze_cmd = subparsers.add_parser("analyze", help="Compare every document of a case")
    analyze_cmd.add_argument("--case-id", type=str, required=True)

    reconcile = subparsers.add_parser("reconcile", help="Triangulate field values across a case")
    reconcile.add_argument("--case-id", type=str, required=True)
    reconcile.add_argument(
        "--field",
        dest="fields",
        action="append",
        help="Field to reconcile; repeat for several (default: every field)",
    )

    for name, noun in (("conflicts", "conflicts"), ("issues", "issues")):
        listing = subparsers.add_parser(name, help=f"List {noun} of a case")
        listing.add_argument("--case-id", type=str, required=True)
        listing.add_argument(
            "--pending",
            action="store_true",
            help=f"Only show pending {noun}",
        )

    resolve_conflict = subparsers.add_parser("resolve-conflict", help="Resolve a conflict")
    resolve_conflict.add_argument("--conflict-id", type=str, required=True)
    resolve_conflict.add_argument(
        "--resolution",
        type=str,
        required=True,
        choices=[
            resolution.value
            for resolution in ConflictResolution
            if resolution != ConflictResolution.PENDING
        ],
    )
    resolve_conflict.add_argument("--by", dest="resolved_by", type=str, required=True)
    resolve_conflict.add_argument("--value", type=str, help="Explicit resolved value")
    resolve_conflict.add_argument("--rationale", type=str)

    resolve_issue = subparsers.add_parser("resolve-issue", help="Resolve or ignore an issue")
    resolve_issue.add_argument("--issue-id", type=str, required=True)
    resolve_issue.add_argument(
        "--status",
        type=str,
        required=True,
        choices=[status.value for status in IssueStatus if status != IssueStatus.PENDING],
    )
    resolve_issue.add_argument("--by", dest="resolved_by", type=str, required=True)
    resolve_issue.add_argument("--value", type=str, help="Corrected field value")
    resolve_issue.add_argument("--notes", type=str)

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _load_payload(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    path = Path(source)
    if not path.is_file():
        raise ValueError(f"Payload file not found: {source}")
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))  # noqa: T201


def _conflict_row(conflict: Conflict) -> dict[str, object]:
    return {
        "id": conflict.id,
        "field": conflict.field_name,
        "document1": conflict.document1_id,
        "document2": conflict.document2_id,
        "value1": render(conflict.value1),
        "value2": render(conflict.value2),
        "variance_percent": round(conflict.variance_percent, 1),
        "severity": conflict.severity,
        "suggested_resolution": conflict.suggested_resolution,
        "reasoning": conflict.reasoning,
        "resolution": conflict.resolution,
        "resolved_value": (
            render(conflict.resolved_value) if conflict.resolved_value is not None else None
        ),
    }


def _issue_row(issue: Issue) -> dict[str, object]:
    return {
        "id": issue.id,
        "document": issue.document_id,
        "field": issue.field_name,
        "kind": issue.kind,
        "priority": issue.priority,
        "reason": issue.reason,
        "value": render(issue.extracted_value),
        "status": issue.status,
    }


def _reconciled_row(reconciled: ReconciledField) -> dict[str, object]:
    return {
        "field": reconciled.field_name,
        "value": render(reconciled.reconciled_value),
        "confidence": round(reconciled.reconciled_confidence, 1),
        "methodology": reconciled.methodology,
        "sources": len(reconciled.sources),
    }


def _run(args: argparse.Namespace) -> None:  # noqa: C901, PLR0912
    if args.command == "case" and args.case_command == "create":
        case = create_case(name=args.name, facility_type=args.facility_type, state=args.state)
        log.info("Created case %s", case.id)
        _emit({"id": case.id, "name": case.name, "facility_type": case.facility_type})
    elif args.command == "ingest":
        result = ingest_document(_parse_uuid(args.case_id), _load_payload(args.payload))
        _emit(
            {
                "document": result.document_id,
                "revision": result.revision,
                "overall_confidence": round(result.overall_confidence, 1),
                "issues_created": [_issue_row(issue) for issue in result.issues_created],
                "issues_reopened": [_issue_row(issue) for issue in result.issues_reopened],
                "conflicts_created": [
                    _conflict_row(conflict) for conflict in result.conflicts_created
                ],
                "conflicts_reopened": [
                    _conflict_row(conflict) for conflict in result.conflicts_reopened
                ],
                "auto_resolved": list(
                    dict.fromkeys(check.field_name for check in result.auto_resolved)
                ),
                "has_unresolved_conflicts": result.has_unresolved_conflicts,
            }
        )
    elif args.command == "analyze":
        analysis = analyze(_parse_uuid(args.case_id))
        _emit(
            {
                "total_documents": analysis.total_documents,
                "analyzed_fields": analysis.analyzed_fields,
                "consistency_score": analysis.consistency_score,
                "conflicts": [_conflict_row(conflict) for conflict in analysis.conflicts],
                "triangulations": [_reconciled_row(item) for item in analysis.triangulations],
                "recommendations": analysis.recommendations,
                "has_unresolved_conflicts": analysis.has_unresolved_conflicts,
            }
        )
    elif args.command == "reconcile":
        reconciled = reconcile_fields(_parse_uuid(args.case_id), args.fields)
        _emit([_reconciled_row(item) for item in reconciled.values()])
    elif args.command == "conflicts":
        conflicts = list_conflicts(_parse_uuid(args.case_id), pending_only=args.pending)
        _emit([_conflict_row(conflict) for conflict in conflicts])
    elif args.command == "issues":
        issues = list_issues(_parse_uuid(args.case_id), pending_only=args.pending)
        _emit([_issue_row(issue) for issue in issues])
    elif args.command == "resolve-conflict":
        conflict = settle_conflict(
            _parse_uuid(args.conflict_id),
            args.resolution,
            resolved_by=args.resolved_by,
            value=args.value,
            rationale=args.rationale,
        )
        _emit(_conflict_row(conflict))
    elif args.command == "resolve-issue":
        issue = settle_issue(
            _parse_uuid(args.issue_id),
            args.status,
            resolved_by=args.resolved_by,
            value=args.value,
            notes=args.notes,
        )
        _emit(_issue_row(issue))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    try:
        configure_logging(level=parsed_args.log_level)
    except ConfigurationError as exc:
        print(f"fieldwise: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(2)

    try:
        _run(parsed_args)
    except (LookupError, ValueError, ConfigurationError):
        log.exception("Request rejected")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
