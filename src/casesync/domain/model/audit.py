"""Audit records for per-case synchronisation passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from casesync.domain.errors import SyncLogFinalizedError

from .base import Entity
from .enums import FailureReason, SyncStatus, SyncTrigger

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class SyncLogEntry(Entity):
    """One orchestration pass over one case.

    Created as ``running``; finalised exactly once as ``completed`` or ``failed``.
    """

    case_id: UUID
    trigger: SyncTrigger = SyncTrigger.MANUAL
    status: SyncStatus = SyncStatus.RUNNING
    started_at: datetime
    completed_at: datetime | None = None
    results: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, Any] = field(default_factory=dict)

    @property
    def is_final(self) -> bool:
        return self.status in {SyncStatus.COMPLETED, SyncStatus.FAILED}

    def complete(self, results: Mapping[str, Any], *, now: datetime) -> None:
        self._ensure_open()
        self.status = SyncStatus.COMPLETED
        self.results = dict(results)
        self.completed_at = now

    def fail(self, reason: FailureReason, message: str, *, now: datetime) -> None:
        self._ensure_open()
        self.status = SyncStatus.FAILED
        self.errors = {"reason": reason.value, "message": message}
        self.completed_at = now

    def _ensure_open(self) -> None:
        if self.is_final:
            raise SyncLogFinalizedError(f"Sync log {self.id} already {self.status}")
