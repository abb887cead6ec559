from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from casesync.domain.errors import PersistenceError
from casesync.domain.extraction import extract_candidates
from casesync.domain.model import Contact, ParticipantRole, PersonKind, User
from casesync.domain.reconciliation import assign_participants, upsert_candidate
from tests.helpers.cases import FIXED_NOW, make_case

if TYPE_CHECKING:
    from casesync.domain.model import ParticipantLink
    from tests.support.store import FakeUnitOfWorkFactory


def test_participants_added_once(uow_factory: FakeUnitOfWorkFactory) -> None:
    case = make_case(buyer_1_name="Alice Buyer", bank="Chase Bank")
    candidates = extract_candidates(case)

    async def scenario() -> tuple[int, int]:
        async with uow_factory() as uow:
            for candidate in candidates:
                await upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW)
            first = await assign_participants(candidates, case_id=case.id, uow=uow, now=FIXED_NOW)
            second = await assign_participants(
                candidates, case_id=case.id, uow=uow, now=FIXED_NOW
            )
        return first.added, second.skipped

    assert asyncio.run(scenario()) == (3, 3)
    links = uow_factory.store.links
    assert len(links) == 3
    roles = {(link.person_kind, link.role) for link in links}
    assert roles == {
        (PersonKind.CONTACT, ParticipantRole.CLIENT),
        (PersonKind.USER, ParticipantRole.THIRD_PARTY),
        (PersonKind.CONTACT, ParticipantRole.THIRD_PARTY),
    }


def test_unresolved_candidate_is_counted_not_created(uow_factory: FakeUnitOfWorkFactory) -> None:
    case = make_case()
    candidates = extract_candidates(case)

    async def scenario() -> tuple[int, int]:
        async with uow_factory() as uow:
            outcome = await assign_participants(
                candidates, case_id=case.id, uow=uow, now=FIXED_NOW
            )
        return outcome.added, outcome.unresolved

    assert asyncio.run(scenario()) == (0, 2)
    assert uow_factory.store.links == []


def test_link_check_is_per_person_kind(uow_factory: FakeUnitOfWorkFactory) -> None:
    case = make_case()
    user = User(external_id="u-1", created_at=FIXED_NOW)
    contact = Contact(external_id="acc-1", created_at=FIXED_NOW)
    contact.id = user.id
    uow_factory.store.users[user.id] = user
    uow_factory.store.contacts[contact.id] = contact

    async def scenario() -> list[ParticipantLink]:
        async with uow_factory() as uow:
            await assign_participants(
                extract_candidates(case), case_id=case.id, uow=uow, now=FIXED_NOW
            )
            return await uow.repositories.participants.list_for_case(case.id)

    links = asyncio.run(scenario())

    assert {link.person_kind for link in links} == {PersonKind.USER, PersonKind.CONTACT}


def test_failing_candidate_does_not_stop_the_rest(
    uow_factory: FakeUnitOfWorkFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    case = make_case()
    candidates = extract_candidates(case)
    uow = uow_factory()
    participants = uow.repositories.participants
    original_add = participants.add
    calls: list[ParticipantLink] = []

    async def flaky_add(link: ParticipantLink) -> None:
        calls.append(link)
        if len(calls) == 1:
            raise PersistenceError("disk full")
        await original_add(link)

    monkeypatch.setattr(participants, "add", flaky_add)

    async def scenario() -> tuple[int, int, list[str]]:
        async with uow:
            for candidate in candidates:
                await upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW)
            outcome = await assign_participants(
                candidates, case_id=case.id, uow=uow, now=FIXED_NOW
            )
        return outcome.added, outcome.failed, outcome.errors

    added, failed, errors = asyncio.run(scenario())

    assert (added, failed) == (1, 1)
    assert errors == ["source.account_ref: disk full"]
