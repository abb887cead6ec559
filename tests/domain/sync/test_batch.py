from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from casesync.config.sync import SyncConfig
from casesync.domain.model import SyncTrigger
from casesync.domain.sync import BatchSyncService, CaseSyncResult, SyncGuard, TriggerStatus
from tests.helpers.cases import FIXED_NOW, FrozenClock, make_case, make_matter

if TYPE_CHECKING:
    from tests.support.store import FakeUnitOfWorkFactory


@dataclass
class _ScriptedOrchestrator:
    failing: set[UUID] = field(default_factory=set)
    gate: asyncio.Event | None = None
    delay: float = 0.0
    calls: list[tuple[UUID, SyncTrigger]] = field(default_factory=list)

    async def sync_case(self, case_id: UUID, *, trigger: SyncTrigger) -> CaseSyncResult:
        self.calls.append((case_id, trigger))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if case_id in self.failing:
            raise RuntimeError(f"case {case_id} exploded")
        return CaseSyncResult(
            case_id=case_id,
            log_id=uuid4(),
            entities_found=3,
            users_created=1,
            contacts_created=2,
            participants_added=2,
        )


@dataclass
class _RecordingSleep:
    calls: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _seed_cases(uow_factory: FakeUnitOfWorkFactory, count: int) -> list[UUID]:
    ids: list[UUID] = []
    for index in range(count):
        created_at = FIXED_NOW + timedelta(minutes=index)
        case = make_case(make_matter(f"m-{index}"), created_at=created_at)
        uow_factory.store.cases[case.id] = case
        ids.append(case.id)
    return ids


def _service(
    uow_factory: FakeUnitOfWorkFactory,
    orchestrator: _ScriptedOrchestrator,
    *,
    sleep: _RecordingSleep | None = None,
    guard: SyncGuard | None = None,
    config: SyncConfig | None = None,
    clock: FrozenClock | None = None,
) -> BatchSyncService:
    return BatchSyncService(
        orchestrator=orchestrator,  # type: ignore[arg-type]
        unit_of_work_factory=uow_factory,
        guard=guard or SyncGuard(),
        config=config or SyncConfig(batch_size=5, batch_pause_seconds=1.0),
        sleep=sleep or _RecordingSleep(),
        clock=clock or FrozenClock(),
    )


def test_full_sync_isolates_failing_case(uow_factory: FakeUnitOfWorkFactory) -> None:
    ids = _seed_cases(uow_factory, 10)
    orchestrator = _ScriptedOrchestrator(failing={ids[3]})
    sleep = _RecordingSleep()

    result = asyncio.run(_service(uow_factory, orchestrator, sleep=sleep).trigger_full_sync())

    assert result.success
    assert result.status is TriggerStatus.COMPLETED
    assert result.results is not None
    assert result.results["total_cases"] == 10
    assert result.results["successful"] == 9
    assert result.results["failed"] == 1
    assert result.results["total_entities"] == 27
    assert result.results["users_created"] == 9
    assert result.results["failures"] == [
        {"case_id": str(ids[3]), "error": f"case {ids[3]} exploded"}
    ]
    assert {case_id for case_id, _ in orchestrator.calls} == set(ids)
    assert {trigger for _, trigger in orchestrator.calls} == {SyncTrigger.FULL}
    assert sleep.calls == [1.0]


def test_full_sync_skips_inactive_and_sourceless_cases(uow_factory: FakeUnitOfWorkFactory) -> None:
    (active,) = _seed_cases(uow_factory, 1)
    inactive = make_case(make_matter("m-off"), is_active=False)
    sourceless = make_case({})
    uow_factory.store.cases.update({inactive.id: inactive, sourceless.id: sourceless})
    orchestrator = _ScriptedOrchestrator()

    asyncio.run(_service(uow_factory, orchestrator).trigger_full_sync())

    assert [case_id for case_id, _ in orchestrator.calls] == [active]


def test_second_batch_run_is_skipped_while_first_runs(
    uow_factory: FakeUnitOfWorkFactory,
) -> None:
    _seed_cases(uow_factory, 2)

    async def scenario() -> tuple[dict[str, object], dict[str, object]]:
        gate = asyncio.Event()
        orchestrator = _ScriptedOrchestrator(gate=gate)
        service = _service(uow_factory, orchestrator)
        running = asyncio.create_task(service.trigger_full_sync("first"))
        while not orchestrator.calls:
            await asyncio.sleep(0)
        skipped = await service.trigger_incremental_sync("second")
        assert service.guard.is_running
        gate.set()
        completed = await running
        assert not service.guard.is_running
        return skipped.as_dict(), completed.as_dict()

    skipped, completed = asyncio.run(scenario())

    assert skipped == {
        "success": False,
        "status": "skipped",
        "error": "Sync already in progress",
    }
    assert completed["status"] == "completed"


def test_incremental_sync_selects_stale_and_changed_cases(
    uow_factory: FakeUnitOfWorkFactory,
) -> None:
    clock = FrozenClock()
    never = make_case(make_matter("m-never"))
    stale = make_case(make_matter("m-stale"), synced_at=clock.now - timedelta(days=2))
    fresh = make_case(
        make_matter("m-fresh"),
        created_at=clock.now - timedelta(days=3),
        synced_at=clock.now - timedelta(hours=1),
    )
    changed = make_case(make_matter("m-changed"), synced_at=clock.now - timedelta(hours=1))
    changed.updated_at = clock.now - timedelta(minutes=5)
    fresh.updated_at = clock.now - timedelta(days=3)
    for case in (never, stale, fresh, changed):
        uow_factory.store.cases[case.id] = case
    orchestrator = _ScriptedOrchestrator()
    sleep = _RecordingSleep()
    config = SyncConfig(incremental_delay_seconds=0.2)

    service = _service(uow_factory, orchestrator, sleep=sleep, config=config, clock=clock)

    result = asyncio.run(service.trigger_incremental_sync())

    called = [case_id for case_id, _ in orchestrator.calls]
    assert called[0] == never.id
    assert set(called) == {never.id, stale.id, changed.id}
    assert sleep.calls == [0.2, 0.2]
    assert result.results is not None
    assert result.results["total_cases"] == 3


def test_run_deadline_reports_crash(uow_factory: FakeUnitOfWorkFactory) -> None:
    _seed_cases(uow_factory, 1)
    orchestrator = _ScriptedOrchestrator(delay=1.0)
    config = SyncConfig(run_timeout_seconds=0.01)

    result = asyncio.run(_service(uow_factory, orchestrator, config=config).trigger_full_sync())

    assert not result.success
    assert result.status is TriggerStatus.CRASHED
    assert result.error is not None


def test_single_case_sync_reports_outcome(uow_factory: FakeUnitOfWorkFactory) -> None:
    good, bad = uuid4(), uuid4()
    guard = SyncGuard()
    service = _service(uow_factory, _ScriptedOrchestrator(failing={bad}), guard=guard)

    with guard.hold("full:manual"):
        completed = asyncio.run(service.trigger_single_case_sync(good))
    crashed = asyncio.run(service.trigger_single_case_sync(bad))

    assert completed.status is TriggerStatus.COMPLETED
    assert completed.results is not None
    assert completed.results["case_id"] == str(good)
    assert crashed.as_dict() == {
        "success": False,
        "status": "crashed",
        "error": f"case {bad} exploded",
    }
