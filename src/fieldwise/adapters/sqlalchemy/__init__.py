"""SQLAlchemy adapter package for fieldwise."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCaseRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyDocumentRepository,
    SqlAlchemyExtractedFieldRepository,
    SqlAlchemyIssueRepository,
)
from .unit_of_work import (
    SqlAlchemyClarificationUnitOfWork,
    StartupError,
    create_store_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCaseRepository",
    "SqlAlchemyClarificationUnitOfWork",
    "SqlAlchemyConflictRepository",
    "SqlAlchemyDocumentRepository",
    "SqlAlchemyExtractedFieldRepository",
    "SqlAlchemyIssueRepository",
    "StartupError",
    "create_store_engine",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
