from __future__ import annotations

import asyncio

from casesync.domain.extraction import CandidateEntity, extract_candidates
from casesync.domain.model import PersonKind, RoleHint
from casesync.domain.reconciliation import first_flagged, update_primary_links, upsert_candidate
from tests.helpers.cases import FIXED_NOW, make_case, make_matter
from tests.support.store import FakeUnitOfWorkFactory


def _client_candidate(source: str) -> CandidateEntity:
    return CandidateEntity(
        source=source,
        kind=PersonKind.CONTACT,
        role_hint=RoleHint.CLIENT,
        display_name=source.upper(),
        should_set_as_client=True,
    )


def test_first_flagged_ignores_later_claimants() -> None:
    first = _client_candidate("a")
    second = _client_candidate("b")

    assert first_flagged([first, second], lambda item: item.should_set_as_client) is first
    assert first_flagged([], lambda item: item.should_set_as_client) is None


def test_primary_links_set_client_and_mirrored_coordinator(
    uow_factory: FakeUnitOfWorkFactory,
) -> None:
    matter = make_matter(
        users=[
            {"id": "u-1", "display_name": "Jane Doe"},
            {"id": "u-2", "display_name": "Later Person"},
        ]
    )
    case = make_case(matter)
    uow_factory.store.cases[case.id] = case
    candidates = extract_candidates(case)

    async def scenario() -> int:
        async with uow_factory() as uow:
            for candidate in candidates:
                await upsert_candidate(candidate, case_id=case.id, uow=uow, now=FIXED_NOW)
            update = await update_primary_links(case, candidates, uow=uow, now=FIXED_NOW)
        return update.updated

    assert asyncio.run(scenario()) == 2
    store = uow_factory.store
    client = next(c for c in store.contacts.values() if c.external_id == "acc-1")
    coordinator = next(u for u in store.users.values() if u.external_id == "u-1")
    assert case.client_id == client.id
    assert case.coordinator_id == coordinator.id
    assert case.primary_attorney_id == coordinator.id


def test_unresolved_primaries_leave_case_untouched(uow_factory: FakeUnitOfWorkFactory) -> None:
    case = make_case()
    before = case.updated_at

    async def scenario() -> int:
        async with uow_factory() as uow:
            update = await update_primary_links(
                case, extract_candidates(case), uow=uow, now=FIXED_NOW.replace(year=2026)
            )
        return update.updated

    assert asyncio.run(scenario()) == 0
    assert case.client_id is None
    assert case.coordinator_id is None
    assert case.updated_at == before
