"""Set a case's primary client and coordinator from this pass's candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .match import find_existing

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime
    from uuid import UUID

    from casesync.domain.extraction import CandidateEntity
    from casesync.domain.model import Case, PersonRecord
    from casesync.domain.ports.unit_of_work import SyncRepositories, SyncUnitOfWork


@dataclass(slots=True)
class PrimaryLinkUpdate:
    updated: int = 0
    fields: dict[str, UUID] = field(default_factory=dict)


def first_flagged(
    candidates: Sequence[CandidateEntity],
    flag: Callable[[CandidateEntity], bool],
) -> CandidateEntity | None:
    """First candidate in extraction order carrying ``flag``; later claimants are ignored."""

    return next((candidate for candidate in candidates if flag(candidate)), None)


async def _resolve(
    candidate: CandidateEntity | None, repositories: SyncRepositories
) -> PersonRecord | None:
    if candidate is None:
        return None
    return await find_existing(candidate, repositories)


async def update_primary_links(
    case: Case,
    candidates: Sequence[CandidateEntity],
    *,
    uow: SyncUnitOfWork,
    now: datetime,
) -> PrimaryLinkUpdate:
    repositories = uow.repositories
    client = await _resolve(
        first_flagged(candidates, lambda item: item.should_set_as_client), repositories
    )
    coordinator = await _resolve(
        first_flagged(candidates, lambda item: item.should_set_as_coordinator), repositories
    )

    staged = case.set_primary_links(
        now=now,
        client_id=client.id if client is not None else None,
        coordinator_id=coordinator.id if coordinator is not None else None,
    )
    if not staged:
        return PrimaryLinkUpdate()

    await repositories.cases.save(case)
    updated = (client is not None) + (coordinator is not None)
    return PrimaryLinkUpdate(updated=updated, fields=staged)
