"""Dry run of a case sync: what would be created or updated, without writing."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from casesync.domain.errors import CaseNotFoundError
from casesync.domain.extraction import (
    CandidateEntity,
    ExtractionStatistics,
    extract_candidates,
    summarize_candidates,
)
from casesync.domain.reconciliation import find_existing

if TYPE_CHECKING:
    from uuid import UUID

    from casesync.domain.ports.unit_of_work import SyncUnitOfWorkFactory


@dataclass(frozen=True, slots=True)
class CandidatePreview:
    candidate: CandidateEntity
    existing_id: UUID | None = None

    @property
    def will_create(self) -> bool:
        return self.existing_id is None and self.candidate.should_create_record

    @property
    def will_update(self) -> bool:
        return self.existing_id is not None

    def as_dict(self) -> dict[str, Any]:
        candidate = self.candidate
        return {
            "source": candidate.source,
            "kind": candidate.kind.value,
            "role_hint": candidate.role_hint.value,
            "display_name": candidate.display_name,
            "email": candidate.email,
            "company": candidate.company,
            "participant_role": (
                candidate.participant_role.value if candidate.participant_role else None
            ),
            "existing_id": str(self.existing_id) if self.existing_id else None,
            "will_create": self.will_create,
            "will_update": self.will_update,
        }


@dataclass(slots=True)
class CasePreview:
    case_id: UUID
    case_name: str
    candidates: list[CandidatePreview] = field(default_factory=list)
    statistics: ExtractionStatistics = field(default_factory=ExtractionStatistics)

    @property
    def to_create(self) -> int:
        return sum(1 for item in self.candidates if item.will_create)

    @property
    def to_update(self) -> int:
        return sum(1 for item in self.candidates if item.will_update)

    def as_dict(self) -> dict[str, Any]:
        return {
            "case_id": str(self.case_id),
            "case_name": self.case_name,
            "to_create": self.to_create,
            "to_update": self.to_update,
            "statistics": asdict(self.statistics),
            "candidates": [item.as_dict() for item in self.candidates],
        }


async def preview_case(unit_of_work_factory: SyncUnitOfWorkFactory, case_id: UUID) -> CasePreview:
    """Extract and match ``case_id`` inside a unit of work that is never committed."""

    async with unit_of_work_factory() as uow:
        case = await uow.repositories.cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)
        candidates = extract_candidates(case)
        previews: list[CandidatePreview] = []
        for candidate in candidates:
            existing = await find_existing(candidate, uow.repositories)
            previews.append(
                CandidatePreview(
                    candidate=candidate, existing_id=existing.id if existing else None
                )
            )
    return CasePreview(
        case_id=case_id,
        case_name=case.name,
        candidates=previews,
        statistics=summarize_candidates(candidates),
    )
