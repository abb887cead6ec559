"""Full, incremental and single-case sync runs built on the per-case orchestrator."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

from casesync.config.sync import SyncConfig
from casesync.domain.errors import ReentrancyRejected
from casesync.domain.model import SyncTrigger, utc_now

from .guard import SyncGuard

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from casesync.domain.ports.unit_of_work import SyncUnitOfWorkFactory

    from .orchestrator import CaseSyncOrchestrator, CaseSyncResult, Clock

log = getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]


class TriggerStatus(StrEnum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    CRASHED = "crashed"


@dataclass(frozen=True, slots=True)
class CaseFailure:
    case_id: UUID
    error: str


@dataclass(slots=True)
class BatchSyncResults:
    total_cases: int = 0
    successful: int = 0
    failed: int = 0
    total_entities: int = 0
    users_created: int = 0
    contacts_created: int = 0
    participants_added: int = 0
    duration_ms: int = 0
    failures: list[CaseFailure] = field(default_factory=list)

    def record_success(self, result: CaseSyncResult) -> None:
        self.successful += 1
        self.total_entities += result.entities_found
        self.users_created += result.users_created
        self.contacts_created += result.contacts_created
        self.participants_added += result.participants_added

    def record_failure(self, case_id: UUID, error: BaseException) -> None:
        self.failed += 1
        self.failures.append(CaseFailure(case_id=case_id, error=str(error) or type(error).__name__))

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_cases": self.total_cases,
            "successful": self.successful,
            "failed": self.failed,
            "total_entities": self.total_entities,
            "users_created": self.users_created,
            "contacts_created": self.contacts_created,
            "participants_added": self.participants_added,
            "duration_ms": self.duration_ms,
            "failures": [
                {"case_id": str(failure.case_id), "error": failure.error}
                for failure in self.failures
            ],
        }


@dataclass(frozen=True, slots=True)
class TriggerResult:
    success: bool
    status: TriggerStatus
    results: dict[str, Any] | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "status": self.status.value}
        if self.results is not None:
            payload["results"] = self.results
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class BatchSyncService:
    """Run the orchestrator over many cases with failure isolation.

    Full and incremental runs share ``guard``, so at most one of them is in
    flight per process. A second request is answered with a ``skipped`` result
    and does not touch the running one. Single-case syncs bypass the guard.
    """

    orchestrator: CaseSyncOrchestrator
    unit_of_work_factory: SyncUnitOfWorkFactory
    guard: SyncGuard = field(default_factory=SyncGuard)
    config: SyncConfig = field(default_factory=SyncConfig)
    sleep: Sleep = asyncio.sleep
    clock: Clock = utc_now

    async def trigger_full_sync(self, reason: str = "manual") -> TriggerResult:
        return await self._guarded(f"full:{reason}", self._run_full, reason)

    async def trigger_incremental_sync(self, reason: str = "manual") -> TriggerResult:
        return await self._guarded(f"incremental:{reason}", self._run_incremental, reason)

    async def trigger_single_case_sync(self, case_id: UUID) -> TriggerResult:
        try:
            result = await self.orchestrator.sync_case(case_id, trigger=SyncTrigger.MANUAL)
        except Exception as exc:
            log.exception("Single case sync failed for %s", case_id)
            return TriggerResult(
                success=False,
                status=TriggerStatus.CRASHED,
                error=str(exc) or type(exc).__name__,
            )
        return TriggerResult(success=True, status=TriggerStatus.COMPLETED, results=result.as_dict())

    async def _guarded(
        self,
        holder: str,
        run: Callable[[str], Awaitable[BatchSyncResults]],
        reason: str,
    ) -> TriggerResult:
        try:
            with self.guard.hold(holder):
                results = await run(reason)
        except ReentrancyRejected as exc:
            log.info("Skipping %s: %s", holder, exc)
            return TriggerResult(
                success=False, status=TriggerStatus.SKIPPED, error="Sync already in progress"
            )
        except Exception as exc:
            log.exception("Sync run %s crashed", holder)
            return TriggerResult(
                success=False,
                status=TriggerStatus.CRASHED,
                error=str(exc) or type(exc).__name__,
            )
        return TriggerResult(
            success=True, status=TriggerStatus.COMPLETED, results=results.as_dict()
        )

    async def _run_full(self, reason: str) -> BatchSyncResults:
        async with self.unit_of_work_factory() as uow:
            case_ids = await uow.repositories.cases.list_full_sync_ids()
        log.info("Starting full sync (%s) over %s cases", reason, len(case_ids))

        results = BatchSyncResults(total_cases=len(case_ids))
        started = time.perf_counter()
        size = self.config.batch_size
        async with asyncio.timeout(self.config.run_timeout_seconds):
            for offset in range(0, len(case_ids), size):
                if offset:
                    await self.sleep(self.config.batch_pause_seconds)
                batch = case_ids[offset : offset + size]
                await self._sync_batch(batch, SyncTrigger.FULL, results)
        results.duration_ms = int((time.perf_counter() - started) * 1000)
        log.info(
            "Finished full sync: %s ok, %s failed in %sms",
            results.successful,
            results.failed,
            results.duration_ms,
        )
        return results

    async def _run_incremental(self, reason: str) -> BatchSyncResults:
        cutoff = self.clock() - self.config.stale_after
        async with self.unit_of_work_factory() as uow:
            case_ids = await uow.repositories.cases.list_incremental_sync_ids(
                cutoff=cutoff, limit=self.config.incremental_limit
            )
        log.info("Starting incremental sync (%s) over %s cases", reason, len(case_ids))

        results = BatchSyncResults(total_cases=len(case_ids))
        started = time.perf_counter()
        async with asyncio.timeout(self.config.run_timeout_seconds):
            for index, case_id in enumerate(case_ids):
                if index:
                    await self.sleep(self.config.incremental_delay_seconds)
                await self._sync_one(case_id, SyncTrigger.INCREMENTAL, results)
        results.duration_ms = int((time.perf_counter() - started) * 1000)
        log.info(
            "Finished incremental sync: %s ok, %s failed in %sms",
            results.successful,
            results.failed,
            results.duration_ms,
        )
        return results

    async def _sync_batch(
        self,
        case_ids: Sequence[UUID],
        trigger: SyncTrigger,
        results: BatchSyncResults,
    ) -> None:
        await asyncio.gather(*(self._sync_one(case_id, trigger, results) for case_id in case_ids))

    async def _sync_one(
        self,
        case_id: UUID,
        trigger: SyncTrigger,
        results: BatchSyncResults,
    ) -> None:
        try:
            outcome = await self.orchestrator.sync_case(case_id, trigger=trigger)
        except Exception as exc:
            log.warning("Case %s failed during %s sync: %s", case_id, trigger, exc)
            results.record_failure(case_id, exc)
            return
        results.record_success(outcome)
