"""Batch and schedule defaults for entity synchronisation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_flag, env_float, env_int, optional_env_var

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_PAUSE_SECONDS = 1.0
DEFAULT_INCREMENTAL_LIMIT = 50
DEFAULT_INCREMENTAL_DELAY_SECONDS = 0.2
DEFAULT_STALE_AFTER = timedelta(hours=24)
DEFAULT_LOG_RETENTION = timedelta(days=30)

DEFAULT_TIMEZONE = "America/Los_Angeles"
DAILY_FULL_SYNC_CRON = "0 2 * * *"
BUSINESS_HOURS_INCREMENTAL_CRON = "0 9-18 * * 1-5"
LOG_PURGE_CRON = "30 3 * * *"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS
    incremental_limit: int = DEFAULT_INCREMENTAL_LIMIT
    incremental_delay_seconds: float = DEFAULT_INCREMENTAL_DELAY_SECONDS
    stale_after: timedelta = DEFAULT_STALE_AFTER
    case_timeout_seconds: float | None = None
    run_timeout_seconds: float | None = None
    log_retention: timedelta = DEFAULT_LOG_RETENTION


@dataclass(frozen=True, slots=True)
class ScheduleConfig:
    enabled: bool = True
    timezone: str = DEFAULT_TIMEZONE
    full_sync_cron: str = DAILY_FULL_SYNC_CRON
    incremental_sync_cron: str = BUSINESS_HOURS_INCREMENTAL_CRON
    log_purge_cron: str = LOG_PURGE_CRON
    # unset keeps the source fetch manual
    source_fetch_cron: str | None = None


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        batch_size=env_int("CASESYNC_BATCH_SIZE", default=DEFAULT_BATCH_SIZE, minimum=1),
        batch_pause_seconds=env_float(
            "CASESYNC_BATCH_PAUSE_SECONDS", default=DEFAULT_BATCH_PAUSE_SECONDS
        )
        or 0.0,
        incremental_limit=env_int(
            "CASESYNC_INCREMENTAL_LIMIT", default=DEFAULT_INCREMENTAL_LIMIT, minimum=1
        ),
        case_timeout_seconds=env_float("CASESYNC_CASE_TIMEOUT_SECONDS", default=None) or None,
        run_timeout_seconds=env_float("CASESYNC_RUN_TIMEOUT_SECONDS", default=None) or None,
    )


def get_schedule_config() -> ScheduleConfig:
    return ScheduleConfig(
        enabled=env_flag("CASESYNC_ENABLE_SCHEDULE", default=True),
        timezone=optional_env_var("CASESYNC_SCHEDULE_TIMEZONE") or DEFAULT_TIMEZONE,
        source_fetch_cron=optional_env_var("CASESYNC_SOURCE_FETCH_CRON"),
    )
