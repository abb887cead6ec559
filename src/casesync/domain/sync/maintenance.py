"""Sync log history, statistics and retention."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any

from casesync.config.sync import DEFAULT_LOG_RETENTION
from casesync.domain.model import SyncStatus, utc_now

if TYPE_CHECKING:
    from casesync.domain.model import SyncLogEntry
    from casesync.domain.ports.unit_of_work import SyncUnitOfWorkFactory

    from .orchestrator import Clock

log = getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20
DEFAULT_STATISTICS_DAYS = 7


@dataclass(slots=True)
class SyncStatistics:
    days: int
    by_status: dict[SyncStatus, int] = field(default_factory=dict)
    synced_cases: int = 0

    @property
    def total(self) -> int:
        return sum(self.by_status.values())

    def count(self, status: SyncStatus) -> int:
        return self.by_status.get(status, 0)

    def as_dict(self) -> dict[str, Any]:
        return {
            "days": self.days,
            "total": self.total,
            **{status.value: self.count(status) for status in SyncStatus},
            "synced_cases": self.synced_cases,
        }


async def sync_history(
    unit_of_work_factory: SyncUnitOfWorkFactory,
    *,
    limit: int = DEFAULT_HISTORY_LIMIT,
    status: SyncStatus | None = None,
) -> list[SyncLogEntry]:
    """Most recent log entries first, optionally only those with ``status``."""

    async with unit_of_work_factory() as uow:
        return await uow.repositories.sync_logs.recent(limit=limit, status=status)


async def sync_statistics(
    unit_of_work_factory: SyncUnitOfWorkFactory,
    *,
    days: int = DEFAULT_STATISTICS_DAYS,
    clock: Clock = utc_now,
) -> SyncStatistics:
    since = clock() - timedelta(days=days)
    async with unit_of_work_factory() as uow:
        by_status = await uow.repositories.sync_logs.count_by_status(since=since)
        synced_cases = await uow.repositories.cases.count_synced_since(since)
    return SyncStatistics(days=days, by_status=dict(by_status), synced_cases=synced_cases)


async def purge_sync_logs(
    unit_of_work_factory: SyncUnitOfWorkFactory,
    *,
    older_than: timedelta = DEFAULT_LOG_RETENTION,
    clock: Clock = utc_now,
) -> int:
    """Delete log entries started before ``now - older_than``; returns how many went."""

    cutoff = clock() - older_than
    async with unit_of_work_factory() as uow:
        deleted = await uow.repositories.sync_logs.delete_started_before(cutoff)
        await uow.commit()
    log.info("Purged %s sync log entries started before %s", deleted, cutoff.isoformat())
    return deleted
