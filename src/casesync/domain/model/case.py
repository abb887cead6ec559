"""Cases (exchanges) that people are synchronised onto."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import TimestampedEntity
from .enums import SyncStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .source import SourcePayload


@dataclass(eq=False, kw_only=True)
class Case(TimestampedEntity):
    name: str = ""
    external_id: str | None = None
    external_status: str | None = None
    is_active: bool = True
    source: SourcePayload | None = None

    # flat text fields copied from the matter's custom fields
    buyer_1_name: str | None = None
    buyer_2_name: str | None = None
    seller_1_name: str | None = None
    seller_2_name: str | None = None
    bank: str | None = None

    client_id: UUID | None = None
    coordinator_id: UUID | None = None
    # mirrors coordinator_id; kept for readers that still use the attorney field
    primary_attorney_id: UUID | None = None

    synced_at: datetime | None = None
    sync_status: SyncStatus | None = None
    source_synced_at: datetime | None = None

    @property
    def has_source(self) -> bool:
        return self.source is not None

    def text_field(self, name: str) -> str | None:
        value = getattr(self, name)
        return value if isinstance(value, str) else None

    def set_primary_links(
        self,
        *,
        now: datetime,
        client_id: UUID | None = None,
        coordinator_id: UUID | None = None,
    ) -> dict[str, UUID]:
        """Apply the given links and return the fields that were staged."""

        staged: dict[str, UUID] = {}
        if client_id is not None:
            self.client_id = client_id
            staged["client_id"] = client_id
        if coordinator_id is not None:
            self.coordinator_id = coordinator_id
            self.primary_attorney_id = coordinator_id
            staged["coordinator_id"] = coordinator_id
            staged["primary_attorney_id"] = coordinator_id
        if staged:
            self.touch(now)
        return staged

    def mark_synced(self, now: datetime) -> None:
        self.synced_at = now
        self.sync_status = SyncStatus.COMPLETED
