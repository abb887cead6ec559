"""Error taxonomy shared by the sync engine and its adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class SyncError(RuntimeError):
    """Base class for errors raised by the synchronisation engine."""


class NotFoundError(SyncError):
    """Raised when a referenced record does not exist in the store."""


class CaseNotFoundError(NotFoundError):
    def __init__(self, case_id: UUID) -> None:
        super().__init__(f"Case not found: {case_id}")
        self.case_id = case_id


class PersistenceError(SyncError):
    """Raised when the store rejects a read or write."""


class DuplicateRecordError(PersistenceError):
    """Raised when an insert collides with a unique key (e.g. an external identifier)."""


class ExternalSourceError(SyncError):
    """Raised when the upstream practice system cannot be read."""


class CaseSyncTimeoutError(SyncError):
    def __init__(self, case_id: UUID, timeout_seconds: float) -> None:
        super().__init__(f"Sync of case {case_id} exceeded {timeout_seconds:g}s")
        self.case_id = case_id
        self.timeout_seconds = timeout_seconds


class ReentrancyRejected(SyncError):  # noqa: N818
    """A batch sync was requested while another one is still running.

    Not a failure: the trigger surface reports it as a skipped run.
    """


class SyncLogFinalizedError(SyncError):
    """Raised when an already finalised sync log entry is finalised again."""
