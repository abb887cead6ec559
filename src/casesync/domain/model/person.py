"""Person records (users and contacts) materialised from case payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from .base import TimestampedEntity
from .enums import PersonKind, RoleHint, UserRole

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Person(TimestampedEntity):
    """Shared shape of users and contacts.

    ``assigned_cases`` behaves as an insertion-ordered set: case ids are only ever
    appended once, and ``case_count`` always equals its length.
    """

    KIND: ClassVar[PersonKind]

    external_id: str | None = None
    email: str | None = None
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""

    assigned_cases: list[UUID] = field(default_factory=list)
    case_count: int = 0
    last_assignment_at: datetime | None = None
    raw_snapshot: dict[str, Any] | None = None
    synced_at: datetime | None = None

    @property
    def kind(self) -> PersonKind:
        return self.KIND

    def assign_case(self, case_id: UUID, *, now: datetime) -> bool:
        """Record an assignment to ``case_id``; return whether it was new."""

        added = case_id not in self.assigned_cases
        if added:
            # reassign rather than append so ORM mutation tracking sees the change
            self.assigned_cases = [*self.assigned_cases, case_id]
        self.case_count = len(self.assigned_cases)
        self.last_assignment_at = now
        return added

    def refresh_snapshot(self, snapshot: Mapping[str, object] | None) -> None:
        if snapshot:
            self.raw_snapshot = dict(snapshot)

    def mark_synced(self, now: datetime) -> None:
        self.synced_at = now
        self.touch(now)


@dataclass(eq=False, kw_only=True)
class User(Person):
    KIND: ClassVar[PersonKind] = PersonKind.USER

    role: UserRole = UserRole.COORDINATOR
    is_active: bool = True
    # hash of a throwaway credential; real credentials are issued elsewhere
    credential_hash: str | None = None


@dataclass(eq=False, kw_only=True)
class Contact(Person):
    KIND: ClassVar[PersonKind] = PersonKind.CONTACT

    contact_type: RoleHint = RoleHint.OTHER
    company: str | None = None
    account_ref_id: str | None = None
    is_primary_contact: bool = False


type PersonRecord = User | Contact
