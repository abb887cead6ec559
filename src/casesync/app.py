"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from casesync.adapters.practice import build_practice_fetcher
from casesync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork, startup
from casesync.config.sync import (
    ScheduleConfig,
    SyncConfig,
    get_schedule_config,
    get_sync_config,
)
from casesync.domain.ingest import SyncSourceCasesResult, sync_source_cases
from casesync.domain.model import utc_now
from casesync.domain.sync import (
    BatchSyncService,
    CaseSyncOrchestrator,
    SyncGuard,
    TriggerScheduler,
    install_default_triggers,
    preview_case,
    purge_sync_logs,
    sync_history,
    sync_statistics,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from casesync.domain.model import SyncLogEntry, SyncStatus
    from casesync.domain.ports.fetching import CaseSourceFetcher
    from casesync.domain.ports.unit_of_work import SyncUnitOfWorkFactory
    from casesync.domain.sync import CasePreview, SyncStatistics
    from casesync.domain.sync.orchestrator import Clock

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncStatusReport:
    is_running: bool
    scheduled_triggers_active: bool
    next_scheduled_runs: dict[str, datetime] = field(default_factory=dict)
    active_triggers: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "scheduled_triggers_active": self.scheduled_triggers_active,
            "active_triggers": list(self.active_triggers),
            "next_scheduled_runs": {
                name: moment.isoformat() for name, moment in self.next_scheduled_runs.items()
            },
        }


@dataclass(slots=True)
class SyncApplication:
    """Wires the sync engine to one store and exposes its trigger and status surfaces."""

    unit_of_work_factory: SyncUnitOfWorkFactory
    sync_config: SyncConfig = field(default_factory=SyncConfig)
    schedule_config: ScheduleConfig = field(default_factory=ScheduleConfig)
    clock: Clock = utc_now
    fetcher_factory: Callable[[], CaseSourceFetcher] = build_practice_fetcher
    guard: SyncGuard = field(default_factory=SyncGuard)
    orchestrator: CaseSyncOrchestrator = field(init=False)
    service: BatchSyncService = field(init=False)
    scheduler: TriggerScheduler = field(init=False)

    def __post_init__(self) -> None:
        self.orchestrator = CaseSyncOrchestrator(
            self.unit_of_work_factory,
            clock=self.clock,
            timeout_seconds=self.sync_config.case_timeout_seconds,
        )
        self.service = BatchSyncService(
            orchestrator=self.orchestrator,
            unit_of_work_factory=self.unit_of_work_factory,
            guard=self.guard,
            config=self.sync_config,
            clock=self.clock,
        )
        self.scheduler = TriggerScheduler(timezone=self.schedule_config.timezone, clock=self.clock)

    async def trigger_full_sync(self, reason: str = "manual") -> dict[str, Any]:
        return (await self.service.trigger_full_sync(reason)).as_dict()

    async def trigger_incremental_sync(self, reason: str = "manual") -> dict[str, Any]:
        return (await self.service.trigger_incremental_sync(reason)).as_dict()

    async def trigger_single_case_sync(self, case_id: UUID) -> dict[str, Any]:
        return (await self.service.trigger_single_case_sync(case_id)).as_dict()

    async def sync_source_cases(
        self, fetcher: CaseSourceFetcher | None = None
    ) -> SyncSourceCasesResult:
        return await sync_source_cases(
            fetcher=fetcher or self.fetcher_factory(),
            unit_of_work_factory=self.unit_of_work_factory,
            clock=self.clock,
        )

    async def preview_case(self, case_id: UUID) -> CasePreview:
        return await preview_case(self.unit_of_work_factory, case_id)

    async def sync_history(
        self, *, limit: int = 20, status: SyncStatus | None = None
    ) -> list[SyncLogEntry]:
        return await sync_history(self.unit_of_work_factory, limit=limit, status=status)

    async def sync_statistics(self, *, days: int = 7) -> SyncStatistics:
        return await sync_statistics(self.unit_of_work_factory, days=days, clock=self.clock)

    async def purge_sync_logs(self) -> int:
        return await purge_sync_logs(
            self.unit_of_work_factory,
            older_than=self.sync_config.log_retention,
            clock=self.clock,
        )

    def get_sync_status(self) -> SyncStatusReport:
        active = tuple(self.scheduler.active_triggers)
        return SyncStatusReport(
            is_running=self.guard.is_running,
            scheduled_triggers_active=bool(active),
            next_scheduled_runs=self.scheduler.next_run_times(),
            active_triggers=active,
        )

    def install_schedule(self) -> bool:
        """Register the default cron triggers; returns False when scheduling is disabled."""

        if not self.schedule_config.enabled:
            log.info("Scheduled sync disabled by configuration")
            return False

        async def purge() -> None:
            await self.purge_sync_logs()

        async def fetch_source() -> None:
            result = await self.sync_source_cases()
            log.info(
                "Scheduled source fetch: fetched=%d created=%d updated=%d",
                result.fetched,
                result.created,
                result.updated,
            )

        install_default_triggers(
            self.scheduler,
            self.service,
            self.schedule_config,
            purge=purge,
            fetch_source=fetch_source,
        )
        return True

    def start_schedule(self) -> None:
        self.scheduler.start()

    async def stop_schedule(self) -> None:
        await self.scheduler.stop()


async def build_application(
    *,
    unit_of_work_factory: SyncUnitOfWorkFactory | None = None,
    database_uri: str | None = None,
    sync_config: SyncConfig | None = None,
    schedule_config: ScheduleConfig | None = None,
) -> SyncApplication:
    """Create the application, starting the SQLAlchemy adapter unless a factory is given."""

    if unit_of_work_factory is None:
        await startup(database_uri=database_uri)
        unit_of_work_factory = SqlAlchemySyncUnitOfWork
    return SyncApplication(
        unit_of_work_factory=unit_of_work_factory,
        sync_config=sync_config or get_sync_config(),
        schedule_config=schedule_config or get_schedule_config(),
    )
