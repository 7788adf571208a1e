"""SQLAlchemy-backed unit of work for the ingest pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from policyingest.adapters.sqlalchemy.mappings import start_mappers
from policyingest.adapters.sqlalchemy.migrations import upgrade_head
from policyingest.adapters.sqlalchemy.repositories import (
    SqlAlchemyAccountRepository,
    SqlAlchemyAgentRepository,
    SqlAlchemyCarrierRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyPolicyRepository,
    SqlAlchemyUserRepository,
)
from policyingest.config import get_database_config
from policyingest.config.ingest import DEFAULT_INSERT_CHUNK_SIZE
from policyingest.config.storage import DEFAULT_SQLITE_BUSY_TIMEOUT
from policyingest.domain.ports import IngestRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call policyingest.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def create_configured_engine(
    database_uri: str,
    *,
    busy_timeout: int = DEFAULT_SQLITE_BUSY_TIMEOUT,
) -> Engine:
    """Create an engine whose connections may be used from worker threads.

    SQLite connections wait up to ``busy_timeout`` seconds for the database
    lock held by another writer instead of failing right away.
    """

    connect_args: dict[str, Any] = {}
    if database_uri.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = busy_timeout
    return create_engine(database_uri, connect_args=connect_args)


def max_concurrent_writers(engine: Engine | None = None) -> int | None:
    """Return how many write transactions the store accepts at once.

    A SQLite database file has a single writer; ``None`` means no limit.
    """

    resolved_engine = engine or _STATE.engine
    if resolved_engine is not None and resolved_engine.dialect.name == "sqlite":
        return 1
    return None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, mappers and schema, and the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )
    if _STATE.engine is not None and _STATE.engine is not engine:
        _STATE.engine.dispose()

    if engine is None:
        database_config = get_database_config()
        resolved_engine = create_configured_engine(
            database_uri or database_config.uri,
            busy_timeout=database_config.busy_timeout,
        )
    else:
        resolved_engine = engine
    start_mappers()
    upgrade_head(engine=resolved_engine)

    log.info("SQLAlchemy adapter ready on %s", resolved_engine.url.render_as_string())
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyIngestUnitOfWork(BaseSqlAlchemyUnitOfWork[IngestRepositories]):
    """Unit of work for ingest pipeline phases."""

    def __init__(self, *, chunk_size: int = DEFAULT_INSERT_CHUNK_SIZE) -> None:
        super().__init__()
        self.chunk_size = chunk_size

    def _build_repositories(self, session: Session) -> IngestRepositories:
        return IngestRepositories(
            agents=SqlAlchemyAgentRepository(session, chunk_size=self.chunk_size),
            categories=SqlAlchemyCategoryRepository(session, chunk_size=self.chunk_size),
            carriers=SqlAlchemyCarrierRepository(session, chunk_size=self.chunk_size),
            users=SqlAlchemyUserRepository(session, chunk_size=self.chunk_size),
            accounts=SqlAlchemyAccountRepository(session, chunk_size=self.chunk_size),
            policies=SqlAlchemyPolicyRepository(session, chunk_size=self.chunk_size),
        )


if TYPE_CHECKING:
    from policyingest.domain.ports import IngestUnitOfWork

    _uow_check: IngestUnitOfWork = SqlAlchemyIngestUnitOfWork()
