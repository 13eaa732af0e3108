"""Domain port definitions for adapters."""

from __future__ import annotations

from .benchmarks import BenchmarkProvider
from .persistence import (
    CaseRepository,
    ConflictRepository,
    DocumentRepository,
    ExtractedFieldRepository,
    IssueRepository,
    Repository,
)
from .unit_of_work import (
    ClarificationRepositories,
    ClarificationUnitOfWork,
    ClarificationUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "BenchmarkProvider",
    "CaseRepository",
    "ClarificationRepositories",
    "ClarificationUnitOfWork",
    "ClarificationUnitOfWorkFactory",
    "ConflictRepository",
    "DocumentRepository",
    "ExtractedFieldRepository",
    "IssueRepository",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
