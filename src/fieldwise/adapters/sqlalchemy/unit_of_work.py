"""SQLAlchemy-backed units of work for the clarification lifecycle.

The engine is registered once per process by :func:`startup`, which also maps
the domain classes and migrates the schema. Units of work draw sessions from
that registration unless handed their own ``sessionmaker``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from fieldwise.adapters.sqlalchemy.mappings import start_mappers
from fieldwise.adapters.sqlalchemy.migrations import upgrade_head
from fieldwise.adapters.sqlalchemy.repositories import (
    SqlAlchemyCaseRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyDocumentRepository,
    SqlAlchemyExtractedFieldRepository,
    SqlAlchemyIssueRepository,
)
from fieldwise.config import get_database_config
from fieldwise.domain.ports.unit_of_work import ClarificationRepositories, RepositoryCollection

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """The store was used before :func:`startup`, or a unit of work was misused."""


class _EngineRegistry:
    """Holds the process engine together with the session factory bound to it."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        # callers read conflicts and issues after commit
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def clear(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._sessions = None

    def sessions(self) -> sessionmaker[Session]:
        if self._sessions is None:
            raise StartupError(
                "Clarification store is not started; call "
                "fieldwise.adapters.sqlalchemy.startup() first."
            )
        return self._sessions


_REGISTRY = _EngineRegistry()


def create_store_engine(uri: str, **kwargs: Any) -> Engine:
    """Engine for the clarification store.

    pysqlite opens and commits transactions on its own schedule, which breaks
    savepoints; SQLite engines get explicit ``BEGIN`` handling instead.
    """

    engine = create_engine(uri, future=True, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _disable_driver_transactions)
        event.listen(engine, "begin", _emit_begin)
    return engine


def _disable_driver_transactions(dbapi_connection: Any, _connection_record: Any) -> None:
    dbapi_connection.isolation_level = None


def _emit_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Register the engine, map the domain model and migrate to the latest schema.

    Raises:
        StartupError: already started and ``force`` is not set.
    """

    if _REGISTRY.engine is not None and not force:
        raise StartupError("Clarification store already started; pass force=True to replace it.")

    if engine is None:
        database = get_database_config()
        engine = create_store_engine(database_uri or database.uri, echo=database.echo)
    start_mappers()
    upgrade_head(engine=engine)
    _REGISTRY.bind(engine)
    log.info("Clarification store ready at %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _REGISTRY.engine


def is_started() -> bool:
    return _REGISTRY.engine is not None


def shutdown() -> None:
    """Dispose the registered engine; mainly for tests and short-lived scripts."""

    _REGISTRY.clear()


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session, one transaction; rolls back when the block raises."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory or _REGISTRY.sessions()
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self.session_factory()
        self._repositories = self._build_repositories(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        # begin_nested flushes pending state before emitting SAVEPOINT
        with self.session.begin_nested():
            yield


class SqlAlchemyClarificationUnitOfWork(BaseSqlAlchemyUnitOfWork[ClarificationRepositories]):
    """Unit of work spanning cases, documents, fields, issues and conflicts."""

    def _build_repositories(self, session: Session) -> ClarificationRepositories:
        return ClarificationRepositories(
            cases=SqlAlchemyCaseRepository(session),
            documents=SqlAlchemyDocumentRepository(session),
            fields=SqlAlchemyExtractedFieldRepository(session),
            issues=SqlAlchemyIssueRepository(session),
            conflicts=SqlAlchemyConflictRepository(session),
        )


if TYPE_CHECKING:
    from fieldwise.domain.ports.unit_of_work import ClarificationUnitOfWork

    _uow_check: ClarificationUnitOfWork = SqlAlchemyClarificationUnitOfWork()
