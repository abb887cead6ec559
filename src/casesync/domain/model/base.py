"""Identity and timestamp building blocks for persisted entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists as soon as the object is created."""

    id: UUID = field(default_factory=new_id)


@dataclass(eq=False, kw_only=True)
class TimestampedEntity(Entity):
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def touch(self, now: datetime) -> None:
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now
