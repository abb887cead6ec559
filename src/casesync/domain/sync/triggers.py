"""Cron-driven triggers for the batch sync runs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from croniter import croniter

from casesync.config.sync import DEFAULT_TIMEZONE
from casesync.domain.model import utc_now

if TYPE_CHECKING:
    from casesync.config.sync import ScheduleConfig

    from .batch import BatchSyncService, Sleep
    from .orchestrator import Clock

log = getLogger(__name__)

type TriggerHandler = Callable[[], Awaitable[object]]


class InvalidCronExpressionError(ValueError):
    def __init__(self, name: str, expression: str) -> None:
        super().__init__(f"Invalid cron expression for trigger {name!r}: {expression!r}")
        self.name = name
        self.expression = expression


@dataclass(slots=True)
class ScheduledTrigger:
    name: str
    cron: str
    handler: TriggerHandler
    last_run_at: datetime | None = None
    runs: int = 0
    failures: int = 0


@dataclass(slots=True)
class TriggerScheduler:
    """Fire registered handlers on their cron schedule until stopped.

    Every trigger gets its own task. A handler that raises is logged and the
    trigger waits for its next fire time as usual.
    """

    timezone: str = DEFAULT_TIMEZONE
    clock: Clock = utc_now
    sleep: Sleep = asyncio.sleep
    _triggers: dict[str, ScheduledTrigger] = field(default_factory=dict, init=False)
    _tasks: dict[str, asyncio.Task[None]] = field(default_factory=dict, init=False)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def triggers(self) -> dict[str, ScheduledTrigger]:
        return dict(self._triggers)

    @property
    def active_triggers(self) -> list[str]:
        return sorted(name for name, task in self._tasks.items() if not task.done())

    @property
    def is_running(self) -> bool:
        return bool(self.active_triggers)

    def register_trigger(self, name: str, cron_expr: str, handler: TriggerHandler) -> None:
        if not croniter.is_valid(cron_expr):
            raise InvalidCronExpressionError(name, cron_expr)
        if name in self._triggers:
            raise ValueError(f"Trigger {name!r} is already registered")
        self._triggers[name] = ScheduledTrigger(name=name, cron=cron_expr, handler=handler)
        log.info("Registered trigger %s (%s, %s)", name, cron_expr, self.timezone)
        if self._tasks:
            self._spawn(self._triggers[name])

    def next_run_time(self, name: str, *, after: datetime | None = None) -> datetime:
        trigger = self._triggers[name]
        start = (after or self.clock()).astimezone(self.zone)
        return croniter(trigger.cron, start).get_next(datetime)

    def next_run_times(self) -> dict[str, datetime]:
        now = self.clock()
        return {name: self.next_run_time(name, after=now) for name in sorted(self._triggers)}

    def start(self) -> None:
        """Launch one task per trigger; must be called from a running event loop."""

        asyncio.get_running_loop()
        for trigger in self._triggers.values():
            task = self._tasks.get(trigger.name)
            if task is None or task.done():
                self._spawn(trigger)
        log.info("Trigger scheduler started with %s", ", ".join(self.active_triggers) or "none")

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            log.info("Trigger scheduler stopped")

    async def run_now(self, name: str) -> None:
        await self._fire(self._triggers[name])

    def _spawn(self, trigger: ScheduledTrigger) -> None:
        self._tasks[trigger.name] = asyncio.create_task(
            self._loop(trigger), name=f"casesync-trigger-{trigger.name}"
        )

    async def _loop(self, trigger: ScheduledTrigger) -> None:
        while True:
            now = self.clock()
            fire_at = self.next_run_time(trigger.name, after=now)
            delay = max((fire_at - now).total_seconds(), 0.0)
            log.debug("Trigger %s sleeping %.0fs until %s", trigger.name, delay, fire_at)
            await self.sleep(delay)
            await self._fire(trigger)

    async def _fire(self, trigger: ScheduledTrigger) -> None:
        trigger.last_run_at = self.clock()
        trigger.runs += 1
        log.info("Trigger %s fired", trigger.name)
        try:
            await trigger.handler()
        except Exception:
            trigger.failures += 1
            log.exception("Trigger %s failed", trigger.name)


def install_default_triggers(
    scheduler: TriggerScheduler,
    service: BatchSyncService,
    config: ScheduleConfig,
    *,
    purge: TriggerHandler | None = None,
    fetch_source: TriggerHandler | None = None,
) -> None:
    """Register the daily full sync and the business-hours incremental sync.

    Log purging and the source fetch are added when their handlers are given;
    the source fetch also needs ``config.source_fetch_cron``.
    """

    async def full_sync() -> None:
        result = await service.trigger_full_sync("scheduled-daily")
        log.info("Scheduled full sync: %s", result.as_dict())

    async def incremental_sync() -> None:
        result = await service.trigger_incremental_sync("scheduled-business-hours")
        log.info("Scheduled incremental sync: %s", result.as_dict())

    scheduler.register_trigger("daily-full-sync", config.full_sync_cron, full_sync)
    scheduler.register_trigger(
        "business-hours-incremental", config.incremental_sync_cron, incremental_sync
    )
    if purge is not None:
        scheduler.register_trigger("daily-log-purge", config.log_purge_cron, purge)
    if fetch_source is not None and config.source_fetch_cron:
        scheduler.register_trigger("source-fetch", config.source_fetch_cron, fetch_source)
