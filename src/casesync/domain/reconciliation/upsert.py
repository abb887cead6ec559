"""Create or update the person record behind a candidate."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from casesync.domain.errors import DuplicateRecordError
from casesync.domain.model import Contact, PersonKind, User, UserRole

from .match import find_existing

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from casesync.domain.extraction import CandidateEntity
    from casesync.domain.model import PersonRecord
    from casesync.domain.ports.unit_of_work import SyncRepositories, SyncUnitOfWork

log = getLogger(__name__)

_SCRYPT_COST = 2**14


@dataclass(slots=True)
class UpsertOutcome:
    person: PersonRecord
    created: bool


def generate_credential_marker() -> str:
    """Hash a random throwaway secret; the plain value is never kept."""

    secret = secrets.token_hex(16).encode()
    salt = secrets.token_bytes(16)
    digest = hashlib.scrypt(secret, salt=salt, n=_SCRYPT_COST, r=8, p=1)
    return f"scrypt${_SCRYPT_COST}${salt.hex()}${digest.hex()}"


def build_person(candidate: CandidateEntity, *, case_id: UUID, now: datetime) -> PersonRecord:
    parsed = candidate.parsed_name
    display_name = candidate.display_name or parsed.company or ""
    snapshot = dict(candidate.raw_snapshot) if candidate.raw_snapshot else None

    if candidate.kind is PersonKind.USER:
        return User(
            external_id=candidate.external_user_id,
            email=candidate.email,
            first_name=parsed.first_name,
            last_name=parsed.last_name,
            display_name=display_name,
            role=candidate.user_role or UserRole.COORDINATOR,
            credential_hash=generate_credential_marker(),
            assigned_cases=[case_id],
            case_count=1,
            last_assignment_at=now,
            raw_snapshot=snapshot,
            synced_at=now,
            created_at=now,
            updated_at=now,
        )
    return Contact(
        external_id=candidate.external_contact_id,
        email=candidate.email,
        first_name=parsed.first_name,
        last_name=parsed.last_name,
        display_name=display_name,
        contact_type=candidate.role_hint,
        company=parsed.company,
        account_ref_id=candidate.account_ref_id,
        is_primary_contact=candidate.is_primary_contact,
        assigned_cases=[case_id],
        case_count=1,
        last_assignment_at=now,
        raw_snapshot=snapshot,
        synced_at=now,
        created_at=now,
        updated_at=now,
    )


async def upsert_candidate(
    candidate: CandidateEntity,
    *,
    case_id: UUID,
    uow: SyncUnitOfWork,
    now: datetime,
) -> UpsertOutcome:
    """Materialise ``candidate`` as a stored person assigned to ``case_id``.

    Safe to repeat: a second call finds the record created by the first and
    leaves its case assignments unchanged. When a concurrent pass inserts the
    same external id first, the unique key rejects our insert and the stored
    row is updated instead.
    """

    repositories = uow.repositories
    existing = await find_existing(candidate, repositories)
    if existing is not None:
        await _merge(existing, candidate, case_id=case_id, repositories=repositories, now=now)
        return UpsertOutcome(person=existing, created=False)

    person = build_person(candidate, case_id=case_id, now=now)
    try:
        async with uow.savepoint():
            await _add(person, repositories)
    except DuplicateRecordError:
        winner = await find_existing(candidate, repositories)
        if winner is None:
            raise
        log.info("Insert for %s lost a race; updating %s instead", candidate.source, winner.id)
        await _merge(winner, candidate, case_id=case_id, repositories=repositories, now=now)
        return UpsertOutcome(person=winner, created=False)

    log.debug("Created %s %s from %s", person.kind, person.id, candidate.source)
    return UpsertOutcome(person=person, created=True)


async def _merge(
    person: PersonRecord,
    candidate: CandidateEntity,
    *,
    case_id: UUID,
    repositories: SyncRepositories,
    now: datetime,
) -> None:
    person.assign_case(case_id, now=now)
    person.refresh_snapshot(candidate.raw_snapshot)
    person.mark_synced(now)
    match person:
        case User():
            await repositories.users.save(person)
        case Contact():
            await repositories.contacts.save(person)


async def _add(person: PersonRecord, repositories: SyncRepositories) -> None:
    match person:
        case User():
            await repositories.users.add(person)
        case Contact():
            await repositories.contacts.add(person)
