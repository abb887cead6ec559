from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from casesync.domain.model import ParticipantRole, PersonKind, RoleHint, UserRole

from .names import ParsedName


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateEntity:
    """A person derived from a case payload, not yet matched to a stored record."""

    source: str
    kind: PersonKind
    role_hint: RoleHint
    display_name: str
    parsed_name: ParsedName = field(default_factory=ParsedName)

    external_contact_id: str | None = None
    external_user_id: str | None = None
    account_ref_id: str | None = None
    email: str | None = None
    user_role: UserRole | None = None
    custom_field_label: str | None = None

    is_primary_contact: bool = False
    should_create_record: bool = True
    should_add_as_participant: bool = False
    participant_role: ParticipantRole | None = None
    should_set_as_client: bool = False
    should_set_as_coordinator: bool = False

    raw_snapshot: Mapping[str, object] | None = field(default=None, compare=False, repr=False)

    @property
    def external_id(self) -> str | None:
        if self.kind is PersonKind.USER:
            return self.external_user_id
        return self.external_contact_id

    @property
    def company(self) -> str | None:
        return self.parsed_name.company

    @property
    def source_root(self) -> str:
        """Top-level origin of the candidate, e.g. ``source.custom_field_values``."""

        head, _, _ = self.source.partition("[")
        return head
