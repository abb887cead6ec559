"""Ports for persisting cases, people, participants and sync logs.

Implementations translate store failures into ``PersistenceError`` and unique
key collisions on insert into ``DuplicateRecordError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from casesync.domain.model import Case, Contact, Person, SyncLogEntry, User

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from casesync.domain.model import ParticipantLink, PersonRecord, SyncStatus


@dataclass(frozen=True, slots=True)
class PersonLookup:
    """Identity keys for one reconciliation query.

    External id and email are OR-ed together. Company and name are only
    consulted when neither of them is populated.
    """

    external_id: str | None = None
    email: str | None = None
    company: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def has_strong_keys(self) -> bool:
        return bool(self.external_id or self.email)

    @property
    def has_name(self) -> bool:
        return bool(self.first_name or self.last_name)

    @property
    def is_empty(self) -> bool:
        return not (self.has_strong_keys or self.company or self.has_name)


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal async repository contract for a persistent aggregate store."""

    async def add(self, entity: TEntity) -> None: ...

    async def save(self, entity: TEntity) -> None: ...


@runtime_checkable
class CaseRepository(Repository[Case], Protocol):
    async def get(self, case_id: UUID) -> Case | None: ...

    async def get_by_external_id(self, external_id: str) -> Case | None: ...

    async def list_full_sync_ids(self) -> list[UUID]:
        """Active cases with a source payload, oldest first."""
        ...

    async def list_incremental_sync_ids(self, *, cutoff: datetime, limit: int) -> list[UUID]:
        """Active cases never synced, synced before ``cutoff``, or changed after it."""
        ...

    async def count_synced_since(self, since: datetime) -> int: ...


@runtime_checkable
class PersonRepository[TPerson: Person](Repository[TPerson], Protocol):
    async def get(self, person_id: UUID) -> TPerson | None: ...

    async def find_matches(self, lookup: PersonLookup) -> list[TPerson]:
        """All records matching the lookup, oldest first."""
        ...


@runtime_checkable
class UserRepository(PersonRepository[User], Protocol):
    """Repository contract for users."""


@runtime_checkable
class ContactRepository(PersonRepository[Contact], Protocol):
    """Repository contract for contacts."""


@runtime_checkable
class ParticipantRepository(Protocol):
    async def add(self, link: ParticipantLink) -> None: ...

    async def exists(self, *, case_id: UUID, person: PersonRecord) -> bool:
        """Whether an active link joins the case and this person."""
        ...

    async def list_for_case(self, case_id: UUID) -> list[ParticipantLink]: ...


@runtime_checkable
class SyncLogRepository(Repository[SyncLogEntry], Protocol):
    async def get(self, entry_id: UUID) -> SyncLogEntry | None: ...

    async def recent(
        self,
        *,
        limit: int,
        status: SyncStatus | None = None,
    ) -> list[SyncLogEntry]: ...

    async def count_by_status(self, *, since: datetime) -> dict[SyncStatus, int]: ...

    async def delete_started_before(self, cutoff: datetime) -> int: ...
