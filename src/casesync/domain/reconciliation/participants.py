"""Link reconciled people to the case they were extracted from."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from casesync.domain.errors import PersistenceError
from casesync.domain.model import ParticipantLink

from .match import find_existing

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from casesync.domain.extraction import CandidateEntity
    from casesync.domain.ports.unit_of_work import SyncRepositories, SyncUnitOfWork

log = getLogger(__name__)


class AssignmentStatus(StrEnum):
    ADDED = "added"
    EXISTING = "existing"
    UNRESOLVED = "unresolved"


@dataclass(slots=True)
class ParticipantAssignment:
    added: int = 0
    skipped: int = 0
    unresolved: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


async def assign_participants(
    candidates: Iterable[CandidateEntity],
    *,
    case_id: UUID,
    uow: SyncUnitOfWork,
    now: datetime,
) -> ParticipantAssignment:
    """Add every participant candidate to the case once.

    A failing candidate is logged and counted; the remaining candidates are
    still processed.
    """

    outcome = ParticipantAssignment()
    for candidate in candidates:
        if not candidate.should_add_as_participant:
            continue
        try:
            async with uow.savepoint():
                status = await _assign(
                    candidate, case_id=case_id, repositories=uow.repositories, now=now
                )
        except PersistenceError as exc:
            log.exception(
                "Could not add participant from %s to case %s", candidate.source, case_id
            )
            outcome.failed += 1
            outcome.errors.append(f"{candidate.source}: {exc}")
            continue

        match status:
            case AssignmentStatus.ADDED:
                outcome.added += 1
            case AssignmentStatus.EXISTING:
                outcome.skipped += 1
            case AssignmentStatus.UNRESOLVED:
                outcome.unresolved += 1
    return outcome


async def _assign(
    candidate: CandidateEntity,
    *,
    case_id: UUID,
    repositories: SyncRepositories,
    now: datetime,
) -> AssignmentStatus:
    role = candidate.participant_role
    person = await find_existing(candidate, repositories)
    if person is None or role is None:
        log.warning("No stored person for participant candidate %s", candidate.source)
        return AssignmentStatus.UNRESOLVED

    if await repositories.participants.exists(case_id=case_id, person=person):
        return AssignmentStatus.EXISTING

    link = ParticipantLink.for_person(case_id=case_id, person=person, role=role, now=now)
    await repositories.participants.add(link)
    return AssignmentStatus.ADDED
