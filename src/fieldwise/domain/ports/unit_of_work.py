"""Transaction boundary the reconciliation core runs its passes inside."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractContextManager
    from types import TracebackType

    from fieldwise.domain.ports.persistence import (
        CaseRepository,
        ConflictRepository,
        DocumentRepository,
        ExtractedFieldRepository,
        IssueRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Any bundle of repositories that share one transaction."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Context manager exposing repositories; uncommitted work is discarded on exit."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def savepoint(self) -> AbstractContextManager[None]:
        """Nested transaction; a write that fails inside it is undone on its own."""
        ...


@dataclass(slots=True)
class ClarificationRepositories(RepositoryCollection):
    """Everything a detection or resolution pass reads and writes."""

    cases: CaseRepository
    documents: DocumentRepository
    fields: ExtractedFieldRepository
    issues: IssueRepository
    conflicts: ConflictRepository


type ClarificationUnitOfWork = UnitOfWork[ClarificationRepositories]
type ClarificationUnitOfWorkFactory = Callable[[], ClarificationUnitOfWork]
