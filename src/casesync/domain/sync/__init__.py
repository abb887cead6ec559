"""Per-case orchestration, batch runs, scheduling and sync log upkeep."""

from __future__ import annotations

from .batch import BatchSyncResults, BatchSyncService, CaseFailure, TriggerResult, TriggerStatus
from .guard import GuardState, SyncGuard
from .maintenance import SyncStatistics, purge_sync_logs, sync_history, sync_statistics
from .orchestrator import CaseSyncOrchestrator, CaseSyncResult
from .preview import CandidatePreview, CasePreview, preview_case
from .triggers import (
    InvalidCronExpressionError,
    ScheduledTrigger,
    TriggerScheduler,
    install_default_triggers,
)

__all__ = [
    "BatchSyncResults",
    "BatchSyncService",
    "CandidatePreview",
    "CaseFailure",
    "CasePreview",
    "CaseSyncOrchestrator",
    "CaseSyncResult",
    "GuardState",
    "InvalidCronExpressionError",
    "ScheduledTrigger",
    "SyncGuard",
    "SyncStatistics",
    "TriggerResult",
    "TriggerScheduler",
    "TriggerStatus",
    "install_default_triggers",
    "preview_case",
    "purge_sync_logs",
    "sync_history",
    "sync_statistics",
]
