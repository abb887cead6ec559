"""Find the stored person a candidate refers to.

Key priority:

* external identifier and email are queried together (one OR query);
  among the rows returned an external-id match beats an email match;
* only when both are absent, the parsed company name (a contact's company,
  a user's display name), or else the exact (first name, last name) pair, is used.

The name tier is deliberately loose and may miss people who are already
stored under a slightly different spelling; a duplicate is the accepted
outcome in that case.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from casesync.domain.ports.persistence import PersonLookup

if TYPE_CHECKING:
    from collections.abc import Sequence

    from casesync.domain.extraction import CandidateEntity
    from casesync.domain.model import PersonRecord
    from casesync.domain.ports.unit_of_work import SyncRepositories


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def lookup_for(candidate: CandidateEntity) -> PersonLookup:
    external_id = _clean(candidate.external_id)
    email = _clean(candidate.email)
    if external_id or email:
        return PersonLookup(external_id=external_id, email=email)

    parsed = candidate.parsed_name
    if parsed.company:
        return PersonLookup(company=parsed.company)
    if parsed.first_name or parsed.last_name:
        return PersonLookup(first_name=parsed.first_name, last_name=parsed.last_name)
    return PersonLookup()


def select_match[TPerson: PersonRecord](
    lookup: PersonLookup, matches: Sequence[TPerson]
) -> TPerson | None:
    if not matches:
        return None
    if lookup.external_id:
        for person in matches:
            if person.external_id == lookup.external_id:
                return person
    if lookup.email:
        for person in matches:
            if person.email == lookup.email:
                return person
    return matches[0]


async def find_existing(
    candidate: CandidateEntity,
    repositories: SyncRepositories,
) -> PersonRecord | None:
    lookup = lookup_for(candidate)
    if lookup.is_empty:
        return None
    repository = repositories.people(candidate.kind)
    matches = await repository.find_matches(lookup)
    return select_match(lookup, matches)
