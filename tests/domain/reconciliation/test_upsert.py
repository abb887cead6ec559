from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest

from casesync.domain.errors import DuplicateRecordError
from casesync.domain.extraction import extract_candidates
from casesync.domain.model import Contact, PersonKind, RoleHint, User
from casesync.domain.reconciliation import build_person, upsert_candidate
from tests.helpers.cases import FIXED_NOW, make_case
from tests.support.store import FakeSyncUnitOfWork, FakeUnitOfWorkFactory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from casesync.domain.extraction import CandidateEntity


def _candidate(kind: PersonKind) -> CandidateEntity:
    return next(c for c in extract_candidates(make_case()) if c.kind is kind)


def test_build_user_carries_a_credential_marker() -> None:
    case = make_case()
    user = build_person(_candidate(PersonKind.USER), case_id=case.id, now=FIXED_NOW)

    assert isinstance(user, User)
    assert user.credential_hash is not None
    assert user.credential_hash.startswith("scrypt$")
    assert user.assigned_cases == [case.id]
    assert user.case_count == 1
    assert (user.first_name, user.last_name) == ("Jane", "Doe")


def test_build_contact_from_account() -> None:
    case = make_case()
    contact = build_person(_candidate(PersonKind.CONTACT), case_id=case.id, now=FIXED_NOW)

    assert isinstance(contact, Contact)
    assert contact.contact_type is RoleHint.CLIENT
    assert contact.is_primary_contact
    assert contact.external_id == "acc-1"
    assert contact.raw_snapshot == {"id": "acc-1", "display_name": "Smith, John"}


def test_upsert_is_idempotent(uow_factory: FakeUnitOfWorkFactory) -> None:
    case = make_case()
    candidate = _candidate(PersonKind.CONTACT)

    async def scenario() -> tuple[bool, bool]:
        async with uow_factory() as uow:
            first = await upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW)
            second = await upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW)
        assert first.person is second.person
        return first.created, second.created

    assert asyncio.run(scenario()) == (True, False)
    (contact,) = uow_factory.store.contacts.values()
    assert contact.assigned_cases == [case.id]
    assert contact.case_count == 1


def test_upsert_appends_new_case_to_existing_person(uow_factory: FakeUnitOfWorkFactory) -> None:
    first_case = make_case()
    second_case = make_case()
    candidate = _candidate(PersonKind.USER)

    async def scenario() -> None:
        async with uow_factory() as uow:
            await upsert_candidate(candidate, case_id=first_case.id, uow=uow, now=FIXED_NOW)
            await upsert_candidate(candidate, case_id=second_case.id, uow=uow, now=FIXED_NOW)

    asyncio.run(scenario())

    (user,) = uow_factory.store.users.values()
    assert user.assigned_cases == [first_case.id, second_case.id]
    assert user.case_count == 2


class _RacingUnitOfWork(FakeSyncUnitOfWork):
    """Another writer inserts the same person between our lookup and our insert."""

    def __init__(self, factory: FakeUnitOfWorkFactory, winner: Contact) -> None:
        super().__init__(factory.store)
        self.winner = winner

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        self.store.contacts[self.winner.id] = self.winner
        yield


def test_upsert_recovers_from_losing_an_insert_race(uow_factory: FakeUnitOfWorkFactory) -> None:
    case = make_case()
    candidate = _candidate(PersonKind.CONTACT)
    winner = Contact(external_id="acc-1", created_at=FIXED_NOW)
    uow = _RacingUnitOfWork(uow_factory, winner)

    outcome = asyncio.run(upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW))

    assert outcome.person is winner
    assert not outcome.created
    assert winner.assigned_cases == [case.id]
    assert list(uow_factory.store.contacts) == [winner.id]


def test_upsert_reraises_duplicate_without_a_winner(
    uow_factory: FakeUnitOfWorkFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    case = make_case()
    candidate = _candidate(PersonKind.CONTACT)
    uow = uow_factory()

    async def reject(entity: Contact) -> None:
        raise DuplicateRecordError(f"unique constraint failed for {entity.id}")

    monkeypatch.setattr(uow.repositories.contacts, "add", reject)

    with pytest.raises(DuplicateRecordError):
        asyncio.run(upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW))
    assert uow_factory.store.contacts == {}
