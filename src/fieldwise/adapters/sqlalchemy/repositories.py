"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.dialects import postgresql, sqlite

from fieldwise.adapters.sqlalchemy.mappings import (
    CONFLICT_KEY_COLUMNS,
    ISSUE_KEY_COLUMNS,
    case_table,
    conflict_table,
    document_table,
    extracted_field_table,
    issue_table,
)
from fieldwise.domain.model import (
    Case,
    Conflict,
    ConflictResolution,
    Document,
    Entity,
    ExtractedField,
    Issue,
    IssueStatus,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from sqlalchemy import ColumnElement, Table
    from sqlalchemy.orm import Session

    from fieldwise.domain.model import ConflictKey, IssueKey


class SqlAlchemyEntityRepository[TEntity: Entity]:
    """Shared add/get helpers for repositories of mapped entities."""

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyInsertIfAbsentMixin:
    """Idempotent inserts keyed on a unique constraint.

    SQLite and PostgreSQL get ``INSERT ... ON CONFLICT DO NOTHING`` so concurrent
    writers never raise; other dialects fall back to check-then-add.
    """

    session: Session

    def _insert_if_absent(
        self,
        table: Table,
        entity: Entity,
        key_columns: Sequence[str],
    ) -> bool:
        # pending ORM objects (documents, cases) must reach the database first
        self.session.flush()
        row = {column.key: getattr(entity, column.key) for column in table.columns}
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            stmt = sqlite.insert(table).values(row).on_conflict_do_nothing(
                index_elements=list(key_columns)
            )
        elif dialect == "postgresql":
            stmt = postgresql.insert(table).values(row).on_conflict_do_nothing(
                index_elements=list(key_columns)
            )
        else:
            if self._key_exists(table, entity, key_columns):
                return False
            self.session.add(entity)
            self.session.flush()
            return True
        result = self.session.execute(stmt)
        return cast(int, getattr(result, "rowcount", 0)) > 0

    def _key_exists(self, table: Table, entity: Entity, key_columns: Sequence[str]) -> bool:
        clauses = [table.c[name] == getattr(entity, name) for name in key_columns]
        return bool(self.session.execute(select(exists().where(and_(*clauses)))).scalar())


class SqlAlchemyCaseRepository(SqlAlchemyEntityRepository[Case]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Case)

    def list_all(self) -> list[Case]:
        stmt = select(Case).order_by(case_table.c.created_at)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyDocumentRepository(SqlAlchemyEntityRepository[Document]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Document)

    def list_for_case(
        self,
        case_id: UUID,
        *,
        exclude: UUID | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        stmt = (
            select(Document)
            .where(document_table.c.case_id == case_id)
            .order_by(document_table.c.ingested_at.desc(), document_table.c.id)
        )
        if exclude is not None:
            stmt = stmt.where(document_table.c.id != exclude)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyExtractedFieldRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_many(self, fields: Iterable[ExtractedField]) -> None:
        self.session.add_all(list(fields))

    def for_document(self, document_id: UUID, *, revision: int) -> list[ExtractedField]:
        stmt = (
            select(ExtractedField)
            .where(extracted_field_table.c.document_id == document_id)
            .where(extracted_field_table.c.revision == revision)
            .order_by(extracted_field_table.c.field_name)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyIssueRepository(SqlAlchemyEntityRepository[Issue], SqlAlchemyInsertIfAbsentMixin):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Issue)

    def add_if_absent(self, issue: Issue) -> bool:
        return self._insert_if_absent(issue_table, issue, ISSUE_KEY_COLUMNS)

    def find(self, key: IssueKey) -> Issue | None:
        case_id, document_id, field_name, kind = key
        stmt = (
            select(Issue)
            .where(issue_table.c.case_id == case_id)
            .where(issue_table.c.document_id == document_id)
            .where(issue_table.c.field_name == field_name)
            .where(issue_table.c.kind == kind)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for_case(self, case_id: UUID, *, pending_only: bool = False) -> list[Issue]:
        stmt = select(Issue).where(issue_table.c.case_id == case_id)
        if pending_only:
            stmt = stmt.where(issue_table.c.status == IssueStatus.PENDING)
        stmt = stmt.order_by(issue_table.c.priority.desc(), issue_table.c.created_at)
        return list(self.session.execute(stmt).scalars())

    def list_pending(
        self,
        *,
        document_id: UUID,
        field_name: str | None = None,
    ) -> list[Issue]:
        stmt = (
            select(Issue)
            .where(issue_table.c.document_id == document_id)
            .where(issue_table.c.status == IssueStatus.PENDING)
        )
        if field_name is not None:
            stmt = stmt.where(issue_table.c.field_name == field_name)
        return list(self.session.execute(stmt.order_by(issue_table.c.created_at)).scalars())

    def has_pending(self, case_id: UUID) -> bool:
        return self._exists(
            issue_table.c.case_id == case_id,
            issue_table.c.status == IssueStatus.PENDING,
        )

    def _exists(self, *clauses: ColumnElement[bool]) -> bool:
        stmt = select(exists().where(and_(*clauses)))
        return bool(self.session.execute(stmt).scalar())


class SqlAlchemyConflictRepository(
    SqlAlchemyEntityRepository[Conflict], SqlAlchemyInsertIfAbsentMixin
):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Conflict)

    def add_if_absent(self, conflict: Conflict) -> bool:
        return self._insert_if_absent(conflict_table, conflict, CONFLICT_KEY_COLUMNS)

    def find(self, key: ConflictKey) -> Conflict | None:
        case_id, field_name, document1_id, document2_id = key
        stmt = (
            select(Conflict)
            .where(conflict_table.c.case_id == case_id)
            .where(conflict_table.c.field_name == field_name)
            .where(conflict_table.c.document1_id == document1_id)
            .where(conflict_table.c.document2_id == document2_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for_case(self, case_id: UUID, *, pending_only: bool = False) -> list[Conflict]:
        stmt = select(Conflict).where(conflict_table.c.case_id == case_id)
        if pending_only:
            stmt = stmt.where(conflict_table.c.resolution == ConflictResolution.PENDING)
        stmt = stmt.order_by(conflict_table.c.created_at, conflict_table.c.field_name)
        return list(self.session.execute(stmt).scalars())

    def has_pending(self, case_id: UUID) -> bool:
        stmt = select(
            exists().where(
                and_(
                    conflict_table.c.case_id == case_id,
                    conflict_table.c.resolution == ConflictResolution.PENDING,
                )
            )
        )
        return bool(self.session.execute(stmt).scalar())

    def has_pending_for(self, *, document_id: UUID, field_name: str) -> bool:
        stmt = select(
            exists().where(
                and_(
                    conflict_table.c.field_name == field_name,
                    conflict_table.c.resolution == ConflictResolution.PENDING,
                    or_(
                        conflict_table.c.document1_id == document_id,
                        conflict_table.c.document2_id == document_id,
                    ),
                )
            )
        )
        return bool(self.session.execute(stmt).scalar())


if TYPE_CHECKING:
    from fieldwise.domain.ports.persistence import (
        CaseRepository,
        ConflictRepository,
        DocumentRepository,
        ExtractedFieldRepository,
        IssueRepository,
    )

    _session_stub = cast("Session", object())
    _case_repo: CaseRepository = SqlAlchemyCaseRepository(_session_stub)
    _document_repo: DocumentRepository = SqlAlchemyDocumentRepository(_session_stub)
    _field_repo: ExtractedFieldRepository = SqlAlchemyExtractedFieldRepository(_session_stub)
    _issue_repo: IssueRepository = SqlAlchemyIssueRepository(_session_stub)
    _conflict_repo: ConflictRepository = SqlAlchemyConflictRepository(_session_stub)
