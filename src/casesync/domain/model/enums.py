from __future__ import annotations

from enum import StrEnum


class PersonKind(StrEnum):
    USER = "user"
    CONTACT = "contact"


class RoleHint(StrEnum):
    """Why a candidate was extracted; stored as the contact type of new contacts."""

    CLIENT = "client"
    ATTORNEY = "attorney"
    BUYER = "buyer"
    SELLER = "seller"
    REFERRAL = "referral"
    ORGANIZATION = "organization"
    SETTLEMENT_AGENT = "settlement_agent"
    INTERNAL = "internal"
    OTHER = "other"


class UserRole(StrEnum):
    ADMIN = "admin"
    COORDINATOR = "coordinator"
    CLIENT = "client"
    THIRD_PARTY = "third_party"


class ParticipantRole(StrEnum):
    CLIENT = "client"
    COORDINATOR = "coordinator"
    THIRD_PARTY = "third_party"


class SyncStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncTrigger(StrEnum):
    MANUAL = "manual"
    FULL = "full"
    INCREMENTAL = "incremental"
    SCHEDULED = "scheduled"


class FailureReason(StrEnum):
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    ERROR = "error"
