"""Domain model for cases, people, participants and sync audit records."""

from __future__ import annotations

from .audit import SyncLogEntry
from .base import Entity, TimestampedEntity, new_id, utc_now
from .case import Case
from .enums import (
    FailureReason,
    ParticipantRole,
    PersonKind,
    RoleHint,
    SyncStatus,
    SyncTrigger,
    UserRole,
)
from .participant import ParticipantLink
from .person import Contact, Person, PersonRecord, User
from .source import AccountRef, AssignedUser, ContactRef, CustomFieldValue, SourcePayload

__all__ = [
    "AccountRef",
    "AssignedUser",
    "Case",
    "Contact",
    "ContactRef",
    "CustomFieldValue",
    "Entity",
    "FailureReason",
    "ParticipantLink",
    "ParticipantRole",
    "Person",
    "PersonKind",
    "PersonRecord",
    "RoleHint",
    "SourcePayload",
    "SyncLogEntry",
    "SyncStatus",
    "SyncTrigger",
    "TimestampedEntity",
    "User",
    "UserRole",
    "new_id",
    "utc_now",
]
