"""SQLAlchemy mapping metadata for the casesync domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from casesync.domain.model import (
    Case,
    Contact,
    ParticipantLink,
    ParticipantRole,
    RoleHint,
    SourcePayload,
    SyncLogEntry,
    SyncStatus,
    SyncTrigger,
    User,
    UserRole,
)

if TYPE_CHECKING:
    from enum import StrEnum

    from sqlalchemy.ext.asyncio import AsyncConnection

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class UUIDListType(TypeDecorator[list[uuid.UUID]]):
    """Ordered list of UUIDs stored as a JSON array of strings."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[uuid.UUID] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps([str(item) for item in value or []])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[uuid.UUID]:
        _ = dialect
        if not value:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        items = cast(list[Any], loaded)
        return [uuid.UUID(item) for item in items if isinstance(item, str)]


class SourcePayloadType(TypeDecorator[SourcePayload]):
    """The raw matter JSON; parsed into a ``SourcePayload`` on load."""

    impl = JSON(none_as_null=True)
    cache_ok = True

    def process_bind_param(
        self, value: SourcePayload | None, dialect: Dialect
    ) -> dict[str, Any] | None:
        _ = dialect
        if value is None:
            return None
        return value.to_json()

    def process_result_value(self, value: object, dialect: Dialect) -> SourcePayload | None:
        _ = dialect
        return SourcePayload.from_raw(value)

    def compare_values(self, x: SourcePayload | None, y: SourcePayload | None) -> bool:
        if x is None or y is None:
            return x is y
        return x.to_json() == y.to_json()


def _enum(enum_cls: type[StrEnum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _timestamps() -> list[Column[Any]]:
    return [
        Column("created_at", UTCDateTime(), nullable=True),
        Column("updated_at", UTCDateTime(), nullable=True),
    ]


def _person_columns() -> list[Column[Any]]:
    return [
        Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
        Column("external_id", String(64), nullable=True, unique=True),
        Column("email", String(320), nullable=True, index=True),
        Column("first_name", String(200), nullable=False, default=""),
        Column("last_name", String(200), nullable=False, default=""),
        Column("display_name", String(400), nullable=False, default=""),
        Column("assigned_cases", UUIDListType(), nullable=False, default=list),
        Column("case_count", Integer, nullable=False, default=0),
        Column("last_assignment_at", UTCDateTime(), nullable=True),
        Column("raw_snapshot", JSON(none_as_null=True), nullable=True),
        Column("synced_at", UTCDateTime(), nullable=True),
        *_timestamps(),
    ]


case_table = Table(
    "cases",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String(400), nullable=False, default=""),
    Column("external_id", String(64), nullable=True, unique=True),
    Column("external_status", String(64), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("source", SourcePayloadType(), nullable=True),
    Column("buyer_1_name", String(400), nullable=True),
    Column("buyer_2_name", String(400), nullable=True),
    Column("seller_1_name", String(400), nullable=True),
    Column("seller_2_name", String(400), nullable=True),
    Column("bank", String(400), nullable=True),
    Column(
        "client_id",
        UUIDColumnType,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "coordinator_id",
        UUIDColumnType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "primary_attorney_id",
        UUIDColumnType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("synced_at", UTCDateTime(), nullable=True),
    Column("sync_status", _enum(SyncStatus, "case_sync_status"), nullable=True),
    Column("source_synced_at", UTCDateTime(), nullable=True),
    *_timestamps(),
    Index("ix_cases_synced_at", "synced_at"),
    Index("ix_cases_updated_at", "updated_at"),
)

user_table = Table(
    "users",
    mapper_registry.metadata,
    *_person_columns(),
    Column("role", _enum(UserRole, "user_role"), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("credential_hash", String(256), nullable=True),
)

contact_table = Table(
    "contacts",
    mapper_registry.metadata,
    *_person_columns(),
    Column("contact_type", _enum(RoleHint, "contact_type"), nullable=False),
    Column("company", String(400), nullable=True, index=True),
    Column("account_ref_id", String(64), nullable=True),
    Column("is_primary_contact", Boolean, nullable=False, default=False),
    Index("ix_contacts_name", "first_name", "last_name"),
)

participant_table = Table(
    "case_participants",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "case_id",
        UUIDColumnType,
        ForeignKey("cases.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("role", _enum(ParticipantRole, "participant_role"), nullable=False),
    Column(
        "user_id", UUIDColumnType, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    ),
    Column(
        "contact_id",
        UUIDColumnType,
        ForeignKey("contacts.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=True),
    UniqueConstraint("case_id", "user_id"),
    UniqueConstraint("case_id", "contact_id"),
)

# no foreign key on case_id: a not_found run still leaves its log entry
sync_log_table = Table(
    "sync_logs",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("case_id", UUIDColumnType, nullable=False, index=True),
    Column("trigger", _enum(SyncTrigger, "sync_trigger"), nullable=False),
    Column("status", _enum(SyncStatus, "sync_log_status"), nullable=False),
    Column("started_at", UTCDateTime(), nullable=False, index=True),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("results", JSON, nullable=False, default=dict),
    Column("errors", JSON, nullable=False, default=dict),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(Case, case_table)
    mapper_registry.map_imperatively(User, user_table)
    mapper_registry.map_imperatively(Contact, contact_table)
    mapper_registry.map_imperatively(ParticipantLink, participant_table)
    mapper_registry.map_imperatively(SyncLogEntry, sync_log_table)
    orm.configure_mappers()
    return mapper_registry


async def create_all_tables(connection: AsyncConnection) -> None:
    """Create every mapped table directly, bypassing migrations (tests and scratch stores)."""

    await connection.run_sync(mapper_registry.metadata.create_all)
