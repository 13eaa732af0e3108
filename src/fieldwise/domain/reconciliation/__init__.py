"""Clarification core: screening, cross-document comparison and reconciliation.

Layered flow for one document:
1) normalize raw values into ``FieldValue``
2) evaluate fields against confidence, benchmarks and criticality
3) detect pairwise conflicts against other documents of the case
4) triangulate touched fields across the case
5) persist issues/conflicts and recompute the case flag
"""

from __future__ import annotations

from .analysis import analyze_case
from .contracts import (
    AutoResolvedCheck,
    CaseAnalysis,
    DocumentProcessingResult,
    FieldEvaluation,
    FieldObservation,
    ReconciledField,
    ReconciledSource,
)
from .detect import ConflictDetector
from .engine import CaseOrchestrator
from .evaluate import FieldEvaluator
from .lifecycle import (
    default_resolved_value,
    refresh_case_flag,
    resolve_conflict,
    resolve_issue,
)
from .normalize import normalize_value
from .triangulate import Triangulator

__all__ = [
    "AutoResolvedCheck",
    "CaseAnalysis",
    "CaseOrchestrator",
    "ConflictDetector",
    "DocumentProcessingResult",
    "FieldEvaluation",
    "FieldEvaluator",
    "FieldObservation",
    "ReconciledField",
    "ReconciledSource",
    "Triangulator",
    "analyze_case",
    "default_resolved_value",
    "normalize_value",
    "refresh_case_flag",
    "resolve_conflict",
    "resolve_issue",
]
