"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from fieldwise.domain.model import Case, Conflict, Document, ExtractedField, Issue

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from fieldwise.domain.model import ConflictKey, IssueKey


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class CaseRepository(Repository[Case], Protocol):
    """Persistence contract for cases."""

    def list_all(self) -> list[Case]: ...


@runtime_checkable
class DocumentRepository(Repository[Document], Protocol):
    """Persistence contract for documents; newest ingestion first."""

    def list_for_case(
        self,
        case_id: UUID,
        *,
        exclude: UUID | None = None,
        limit: int | None = None,
    ) -> list[Document]: ...


@runtime_checkable
class ExtractedFieldRepository(Protocol):
    """Append-only store of extracted field revisions."""

    def add_many(self, fields: Iterable[ExtractedField]) -> None: ...

    def for_document(self, document_id: UUID, *, revision: int) -> list[ExtractedField]: ...


@runtime_checkable
class IssueRepository(Repository[Issue], Protocol):
    """Persistence contract for single-document issues."""

    def add_if_absent(self, issue: Issue) -> bool:
        """Insert unless an issue with the same key exists; return whether inserted."""
        ...

    def find(self, key: IssueKey) -> Issue | None: ...

    def list_for_case(self, case_id: UUID, *, pending_only: bool = False) -> list[Issue]: ...

    def list_pending(
        self,
        *,
        document_id: UUID,
        field_name: str | None = None,
    ) -> list[Issue]: ...

    def has_pending(self, case_id: UUID) -> bool: ...


@runtime_checkable
class ConflictRepository(Repository[Conflict], Protocol):
    """Persistence contract for cross-document conflicts."""

    def add_if_absent(self, conflict: Conflict) -> bool:
        """Insert unless the same document pair already conflicts on this field."""
        ...

    def find(self, key: ConflictKey) -> Conflict | None: ...

    def list_for_case(self, case_id: UUID, *, pending_only: bool = False) -> list[Conflict]: ...

    def has_pending(self, case_id: UUID) -> bool: ...

    def has_pending_for(self, *, document_id: UUID, field_name: str) -> bool: ...
