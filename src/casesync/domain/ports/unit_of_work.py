"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

from casesync.domain.model import PersonKind

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager
    from types import TracebackType

    from casesync.domain.model import Contact, User
    from casesync.domain.ports.persistence import (
        CaseRepository,
        ContactRepository,
        ParticipantRepository,
        PersonRepository,
        SyncLogRepository,
        UserRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Async transaction boundary around a repository collection.

    Leaving the context without ``commit`` discards pending changes.
    ``savepoint`` isolates a single write so its failure can be rolled back
    without losing the rest of the transaction.
    """

    @property
    def repositories(self) -> TRepositories: ...

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    def savepoint(self) -> AbstractAsyncContextManager[None]: ...


@dataclass(slots=True)
class SyncRepositories(RepositoryCollection):
    """Repositories touched by one synchronisation pass."""

    cases: CaseRepository
    users: UserRepository
    contacts: ContactRepository
    participants: ParticipantRepository
    sync_logs: SyncLogRepository

    def people(self, kind: PersonKind) -> PersonRepository[User] | PersonRepository[Contact]:
        if kind is PersonKind.USER:
            return self.users
        return self.contacts


type SyncUnitOfWork = UnitOfWork[SyncRepositories]
type SyncUnitOfWorkFactory = Callable[[], SyncUnitOfWork]
