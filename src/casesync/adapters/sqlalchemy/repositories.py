"""Repository implementations backed by SQLAlchemy async sessions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from casesync.adapters.sqlalchemy.mappings import (
    case_table,
    contact_table,
    participant_table,
    sync_log_table,
    user_table,
)
from casesync.domain.errors import DuplicateRecordError, PersistenceError
from casesync.domain.model import (
    Case,
    Contact,
    ParticipantLink,
    PersonKind,
    SyncLogEntry,
    SyncStatus,
    User,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import ColumnElement, CursorResult, Table
    from sqlalchemy.ext.asyncio import AsyncSession

    from casesync.domain.model import PersonRecord
    from casesync.domain.ports.persistence import PersonLookup


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as the domain's persistence errors."""

    try:
        yield
    except IntegrityError as exc:
        raise DuplicateRecordError(f"{action}: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{action}: {exc}") from exc


class _SessionRepository[TEntity]:
    def __init__(self, session: AsyncSession, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    async def add(self, entity: TEntity) -> None:
        # flushed right away so a unique-key collision surfaces inside the caller's savepoint
        with store_errors(f"Could not add {self._entity_cls.__name__}"):
            self.session.add(entity)
            await self.session.flush()

    async def save(self, entity: TEntity) -> None:
        with store_errors(f"Could not save {self._entity_cls.__name__}"):
            self.session.add(entity)
            await self.session.flush()

    async def get(self, entity_id: UUID) -> TEntity | None:
        with store_errors(f"Could not load {self._entity_cls.__name__} {entity_id}"):
            return await self.session.get(self._entity_cls, entity_id)


class SqlAlchemyCaseRepository(_SessionRepository[Case]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Case)

    async def get_by_external_id(self, external_id: str) -> Case | None:
        stmt = select(Case).where(case_table.c.external_id == external_id).limit(1)
        with store_errors(f"Could not load case {external_id!r}"):
            return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_full_sync_ids(self) -> list[UUID]:
        stmt = (
            select(case_table.c.id)
            .where(case_table.c.is_active.is_(True))
            .where(case_table.c.source.is_not(None))
            .order_by(case_table.c.created_at.asc(), case_table.c.id)
        )
        with store_errors("Could not list cases for a full sync"):
            return list((await self.session.execute(stmt)).scalars())

    async def list_incremental_sync_ids(self, *, cutoff: datetime, limit: int) -> list[UUID]:
        stmt = (
            select(case_table.c.id)
            .where(case_table.c.is_active.is_(True))
            .where(case_table.c.source.is_not(None))
            .where(
                or_(
                    case_table.c.synced_at.is_(None),
                    case_table.c.synced_at < cutoff,
                    case_table.c.updated_at > cutoff,
                )
            )
            .order_by(case_table.c.synced_at.asc().nulls_first(), case_table.c.created_at.asc())
            .limit(limit)
        )
        with store_errors("Could not list cases for an incremental sync"):
            return list((await self.session.execute(stmt)).scalars())

    async def count_synced_since(self, since: datetime) -> int:
        stmt = select(func.count()).select_from(case_table).where(case_table.c.synced_at >= since)
        with store_errors("Could not count synced cases"):
            return int((await self.session.execute(stmt)).scalar_one())


class _SqlAlchemyPersonRepository[TPerson: (User, Contact)](_SessionRepository[TPerson]):
    table: Table

    async def find_matches(self, lookup: PersonLookup) -> list[TPerson]:
        condition = self._condition(lookup)
        if condition is None:
            return []
        stmt = (
            select(self._entity_cls)
            .where(condition)
            .order_by(self.table.c.created_at.asc(), self.table.c.id)
        )
        with store_errors(f"Could not look up {self._entity_cls.__name__}"):
            return list((await self.session.execute(stmt)).scalars())

    def _condition(self, lookup: PersonLookup) -> ColumnElement[bool] | None:
        columns = self.table.c
        if lookup.has_strong_keys:
            clauses: list[ColumnElement[bool]] = []
            if lookup.external_id:
                clauses.append(columns.external_id == lookup.external_id)
            if lookup.email:
                clauses.append(columns.email == lookup.email)
            return or_(*clauses)
        if lookup.company:
            return self._company_condition(lookup.company)
        if lookup.has_name:
            return (columns.first_name == (lookup.first_name or "")) & (
                columns.last_name == (lookup.last_name or "")
            )
        return None

    def _company_condition(self, company: str) -> ColumnElement[bool] | None:
        raise NotImplementedError


class SqlAlchemyUserRepository(_SqlAlchemyPersonRepository[User]):
    table = user_table

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    def _company_condition(self, company: str) -> ColumnElement[bool] | None:
        # users have no company column; a company-named user is stored under that display name
        return user_table.c.display_name == company


class SqlAlchemyContactRepository(_SqlAlchemyPersonRepository[Contact]):
    table = contact_table

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Contact)

    def _company_condition(self, company: str) -> ColumnElement[bool] | None:
        return contact_table.c.company == company


class SqlAlchemyParticipantRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, link: ParticipantLink) -> None:
        with store_errors("Could not add participant"):
            self.session.add(link)
            await self.session.flush()

    async def exists(self, *, case_id: UUID, person: PersonRecord) -> bool:
        person_column = (
            participant_table.c.user_id
            if person.KIND is PersonKind.USER
            else participant_table.c.contact_id
        )
        stmt = (
            select(participant_table.c.id)
            .where(participant_table.c.case_id == case_id)
            .where(person_column == person.id)
            .where(participant_table.c.is_active.is_(True))
            .limit(1)
        )
        with store_errors(f"Could not check participants of case {case_id}"):
            return (await self.session.execute(stmt)).first() is not None

    async def list_for_case(self, case_id: UUID) -> list[ParticipantLink]:
        stmt = (
            select(ParticipantLink)
            .where(participant_table.c.case_id == case_id)
            .order_by(participant_table.c.created_at.asc(), participant_table.c.id)
        )
        with store_errors(f"Could not list participants of case {case_id}"):
            return list((await self.session.execute(stmt)).scalars())


class SqlAlchemySyncLogRepository(_SessionRepository[SyncLogEntry]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SyncLogEntry)

    async def recent(self, *, limit: int, status: SyncStatus | None = None) -> list[SyncLogEntry]:
        stmt = select(SyncLogEntry).order_by(sync_log_table.c.started_at.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(sync_log_table.c.status == status)
        with store_errors("Could not load sync history"):
            return list((await self.session.execute(stmt)).scalars())

    async def count_by_status(self, *, since: datetime) -> dict[SyncStatus, int]:
        stmt = (
            select(sync_log_table.c.status, func.count())
            .where(sync_log_table.c.started_at >= since)
            .group_by(sync_log_table.c.status)
        )
        with store_errors("Could not count sync log entries"):
            rows = (await self.session.execute(stmt)).all()
        return {SyncStatus(status): int(count) for status, count in rows}

    async def delete_started_before(self, cutoff: datetime) -> int:
        stmt = delete(sync_log_table).where(sync_log_table.c.started_at < cutoff)
        with store_errors("Could not purge sync log entries"):
            result = cast("CursorResult[Any]", await self.session.execute(stmt))
        return result.rowcount


if TYPE_CHECKING:
    from casesync.domain.ports.persistence import (
        CaseRepository,
        ContactRepository,
        ParticipantRepository,
        SyncLogRepository,
        UserRepository,
    )

    def _port_checks(session: AsyncSession) -> None:
        _case: CaseRepository = SqlAlchemyCaseRepository(session)
        _users: UserRepository = SqlAlchemyUserRepository(session)
        _contacts: ContactRepository = SqlAlchemyContactRepository(session)
        _participants: ParticipantRepository = SqlAlchemyParticipantRepository(session)
        _logs: SyncLogRepository = SqlAlchemySyncLogRepository(session)
