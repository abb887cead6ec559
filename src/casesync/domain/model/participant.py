from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import Entity
from .enums import ParticipantRole, PersonKind

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .person import PersonRecord


@dataclass(eq=False, kw_only=True)
class ParticipantLink(Entity):
    """Membership of a user or contact in a case. Exactly one of the person ids is set."""

    case_id: UUID
    role: ParticipantRole
    user_id: UUID | None = None
    contact_id: UUID | None = None
    is_active: bool = True
    created_at: datetime | None = None

    @classmethod
    def for_person(
        cls,
        *,
        case_id: UUID,
        person: PersonRecord,
        role: ParticipantRole,
        now: datetime,
    ) -> ParticipantLink:
        if person.KIND is PersonKind.USER:
            return cls(case_id=case_id, role=role, user_id=person.id, created_at=now)
        return cls(case_id=case_id, role=role, contact_id=person.id, created_at=now)

    @property
    def person_kind(self) -> PersonKind:
        return PersonKind.USER if self.user_id is not None else PersonKind.CONTACT

    @property
    def person_id(self) -> UUID:
        person_id = self.user_id or self.contact_id
        if person_id is None:
            raise ValueError("Participant link without a person")
        return person_id
