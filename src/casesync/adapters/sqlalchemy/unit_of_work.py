"""SQLAlchemy-backed async units of work for the sync engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal, Self

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from casesync.adapters.sqlalchemy.mappings import start_mappers
from casesync.adapters.sqlalchemy.migrations import upgrade_head
from casesync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCaseRepository,
    SqlAlchemyContactRepository,
    SqlAlchemyParticipantRepository,
    SqlAlchemySyncLogRepository,
    SqlAlchemyUserRepository,
    store_errors,
)
from casesync.config.storage import SQLITE_BUSY_TIMEOUT_SECONDS, get_database_config
from casesync.domain.ports.unit_of_work import RepositoryCollection, SyncRepositories

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: AsyncEngine | None = None
    _session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    @engine.setter
    def engine(self, value: AsyncEngine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call casesync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._session_factory


_STATE = _AdapterState()


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let pysqlite/aiosqlite honour SAVEPOINT by issuing BEGIN ourselves.

    ``BEGIN IMMEDIATE`` takes the write lock up front, so concurrent units of work
    queue on the busy timeout instead of failing with SQLITE_BUSY when a read
    transaction later tries to write.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        _ = connection_record
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(connection: Connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_uri: str, *, echo: bool = False) -> AsyncEngine:
    is_sqlite = database_uri.startswith("sqlite")
    engine = create_async_engine(
        database_uri,
        echo=echo,
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT_SECONDS} if is_sqlite else {},
    )
    if is_sqlite:
        enable_sqlite_savepoints(engine)
    return engine


async def startup(
    *,
    engine: AsyncEngine | None = None,
    database_uri: str | None = None,
    force: bool = False,
    migrate: bool = True,
) -> AsyncEngine:
    """Initialise the async engine, mappers, schema and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        database = get_database_config()
        engine = build_engine(database_uri or database.uri, echo=database.echo)
    start_mappers()
    if migrate:
        await upgrade_head(engine=engine)

    _STATE.engine = engine
    log.debug("SQLAlchemy adapter started on %s", engine.url.render_as_string(hide_password=True))
    return engine


def configured_engine() -> AsyncEngine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


async def shutdown() -> None:
    """Dispose the managed engine and reset state."""

    if _STATE.engine is not None:
        await _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic async unit of work with pluggable repository collections."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self.session_factory = session_factory or _STATE.session_factory
        self._session: AsyncSession | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: AsyncSession) -> TRepositories: ...

    async def __aenter__(self) -> Self:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            await session.rollback()
        finally:
            await session.close()
            self.session = None
            self._repositories = None
        return False

    async def commit(self) -> None:
        with store_errors("Could not commit"):
            await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        with store_errors("Savepoint failed"):
            async with self.session.begin_nested():
                yield

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: AsyncSession | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemySyncUnitOfWork(BaseSqlAlchemyUnitOfWork[SyncRepositories]):
    """Unit of work over cases, people, participants and sync logs."""

    def _build_repositories(self, session: AsyncSession) -> SyncRepositories:
        return SyncRepositories(
            cases=SqlAlchemyCaseRepository(session),
            users=SqlAlchemyUserRepository(session),
            contacts=SqlAlchemyContactRepository(session),
            participants=SqlAlchemyParticipantRepository(session),
            sync_logs=SqlAlchemySyncLogRepository(session),
        )


if TYPE_CHECKING:
    from casesync.domain.ports.unit_of_work import SyncUnitOfWork

    _uow_check: SyncUnitOfWork = SqlAlchemySyncUnitOfWork()
