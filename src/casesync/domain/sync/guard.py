"""Re-entrancy guard for repository-wide sync runs."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from enum import StrEnum
from typing import TYPE_CHECKING

from casesync.domain.errors import ReentrancyRejected

if TYPE_CHECKING:
    from collections.abc import Iterator


class GuardState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class SyncGuard:
    """Compare-and-set state shared by the full and incremental triggers.

    The lock is held only for the state transition, never across awaits, so the
    guard is safe both for tasks on one event loop and for callers on other
    threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = GuardState.IDLE
        self._holder: str | None = None

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is GuardState.RUNNING

    @property
    def holder(self) -> str | None:
        return self._holder

    def compare_and_set(self, expected: GuardState, new: GuardState) -> bool:
        with self._lock:
            if self._state is not expected:
                return False
            self._state = new
            return True

    def try_acquire(self, holder: str) -> bool:
        with self._lock:
            if self._state is not GuardState.IDLE:
                return False
            self._state = GuardState.RUNNING
            self._holder = holder
            return True

    def release(self) -> None:
        with self._lock:
            self._state = GuardState.IDLE
            self._holder = None

    @contextmanager
    def hold(self, holder: str) -> Iterator[None]:
        if not self.try_acquire(holder):
            raise ReentrancyRejected(f"Sync already in progress ({self._holder})")
        try:
            yield
        finally:
            self.release()
