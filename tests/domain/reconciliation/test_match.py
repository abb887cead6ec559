from __future__ import annotations

import asyncio
from datetime import timedelta

from casesync.domain.extraction import CandidateEntity, parse_display_name
from casesync.domain.model import Contact, PersonKind, RoleHint, User
from casesync.domain.ports.persistence import PersonLookup
from casesync.domain.reconciliation import find_existing, lookup_for, select_match
from tests.helpers.cases import FIXED_NOW
from tests.support.store import FakeUnitOfWorkFactory


def _contact_candidate(
    display_name: str,
    *,
    external_contact_id: str | None = None,
    email: str | None = None,
) -> CandidateEntity:
    return CandidateEntity(
        source="case.buyer_1_name",
        kind=PersonKind.CONTACT,
        role_hint=RoleHint.BUYER,
        display_name=display_name,
        parsed_name=parse_display_name(display_name),
        external_contact_id=external_contact_id,
        email=email,
    )


def test_lookup_prefers_strong_keys_over_names() -> None:
    candidate = _contact_candidate(
        "John Smith", external_contact_id=" c-1 ", email="john@example.com"
    )

    assert lookup_for(candidate) == PersonLookup(external_id="c-1", email="john@example.com")


def test_lookup_falls_back_to_company_then_name() -> None:
    assert lookup_for(_contact_candidate("Acme Title LLC")) == PersonLookup(
        company="Acme Title LLC"
    )
    assert lookup_for(_contact_candidate("Smith, John")) == PersonLookup(
        first_name="John", last_name="Smith"
    )
    assert lookup_for(_contact_candidate("")).is_empty


def test_external_id_match_beats_older_email_match() -> None:
    by_email = Contact(email="a@example.com", created_at=FIXED_NOW)
    by_id = Contact(external_id="c-1", created_at=FIXED_NOW + timedelta(days=1))
    lookup = PersonLookup(external_id="c-1", email="a@example.com")

    assert select_match(lookup, [by_email, by_id]) is by_id


def test_email_match_beats_first_row() -> None:
    other = Contact(external_id="c-2", created_at=FIXED_NOW)
    by_email = Contact(email="a@example.com", created_at=FIXED_NOW + timedelta(days=1))
    lookup = PersonLookup(external_id="c-1", email="a@example.com")

    assert select_match(lookup, [other, by_email]) is by_email
    assert select_match(lookup, []) is None


def test_find_existing_queries_the_candidate_kind(uow_factory: FakeUnitOfWorkFactory) -> None:
    store = uow_factory.store
    user = User(external_id="u-1", created_at=FIXED_NOW)
    contact = Contact(external_id="u-1", created_at=FIXED_NOW)
    store.users[user.id] = user
    store.contacts[contact.id] = contact
    candidate = CandidateEntity(
        source="source.assigned_to_users[0]",
        kind=PersonKind.USER,
        role_hint=RoleHint.ATTORNEY,
        display_name="Jane Doe",
        external_user_id="u-1",
    )

    async def scenario() -> object:
        async with uow_factory() as uow:
            return await find_existing(candidate, uow.repositories)

    assert asyncio.run(scenario()) is user


def test_name_tier_requires_exact_spelling(uow_factory: FakeUnitOfWorkFactory) -> None:
    stored = Contact(first_name="Jon", last_name="Smith", created_at=FIXED_NOW)
    uow_factory.store.contacts[stored.id] = stored

    async def scenario(name: str) -> object:
        async with uow_factory() as uow:
            return await find_existing(_contact_candidate(name), uow.repositories)

    assert asyncio.run(scenario("Jon Smith")) is stored
    assert asyncio.run(scenario("John Smith")) is None
