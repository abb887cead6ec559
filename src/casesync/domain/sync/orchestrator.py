"""Per-case synchronisation pass.

Steps run strictly in order, since each one reads what the previous one wrote:

1. open a ``running`` sync log entry (committed on its own),
2. load the case, failing with ``not_found`` when it is gone,
3. extract candidates,
4. upsert user candidates, then contact candidates,
5. add participants,
6. update the primary client / coordinator links,
7. stamp the case as synced (best effort),
8. finalise the log entry as ``completed`` or ``failed``.

Steps 2-6 share one unit of work. Each candidate write runs in a savepoint,
so one rejected candidate does not roll back the others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from casesync.domain.errors import (
    CaseNotFoundError,
    CaseSyncTimeoutError,
    NotFoundError,
    PersistenceError,
)
from casesync.domain.extraction import extract_candidates
from casesync.domain.model import FailureReason, PersonKind, SyncLogEntry, SyncTrigger, utc_now
from casesync.domain.reconciliation import (
    assign_participants,
    update_primary_links,
    upsert_candidate,
)

if TYPE_CHECKING:
    from uuid import UUID

    from casesync.domain.extraction import CandidateEntity
    from casesync.domain.ports.unit_of_work import SyncUnitOfWork, SyncUnitOfWorkFactory

log = getLogger(__name__)

type Clock = Callable[[], datetime]


@dataclass(slots=True)
class CaseSyncResult:
    case_id: UUID
    log_id: UUID
    entities_found: int = 0
    users_created: int = 0
    users_updated: int = 0
    contacts_created: int = 0
    contacts_updated: int = 0
    participants_added: int = 0
    primary_links_updated: int = 0
    candidate_errors: list[str] = field(default_factory=list)

    def record_upsert(self, kind: PersonKind, *, created: bool) -> None:
        match kind, created:
            case PersonKind.USER, True:
                self.users_created += 1
            case PersonKind.USER, False:
                self.users_updated += 1
            case PersonKind.CONTACT, True:
                self.contacts_created += 1
            case PersonKind.CONTACT, False:
                self.contacts_updated += 1

    def counts(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("case_id")
        payload.pop("log_id")
        return payload

    def as_dict(self) -> dict[str, Any]:
        return {"case_id": str(self.case_id), "log_id": str(self.log_id), **self.counts()}


@dataclass(slots=True)
class CaseSyncOrchestrator:
    unit_of_work_factory: SyncUnitOfWorkFactory
    clock: Clock = utc_now
    timeout_seconds: float | None = None

    async def sync_case(
        self,
        case_id: UUID,
        *,
        trigger: SyncTrigger = SyncTrigger.MANUAL,
    ) -> CaseSyncResult:
        """Run one pass over ``case_id`` and return its counts.

        Raises ``CaseNotFoundError``, ``CaseSyncTimeoutError`` or whatever step 3-7
        raised, after the log entry has been finalised as ``failed``.
        Cancellation finalises the entry with reason ``cancelled`` and propagates.
        A ``PersistenceError`` while completing the entry marks it ``failed`` instead.
        """

        log_id = await self._open_log(case_id, trigger)
        deadline = asyncio.timeout(self.timeout_seconds)
        try:
            async with deadline:
                result = await self._run(case_id, log_id)
        except asyncio.CancelledError:
            await self._fail_log(log_id, FailureReason.CANCELLED, "Sync cancelled")
            raise
        except Exception as exc:
            if isinstance(exc, TimeoutError) and deadline.expired():
                timeout_error = CaseSyncTimeoutError(case_id, self.timeout_seconds or 0.0)
                await self._fail_log(log_id, FailureReason.TIMEOUT, str(timeout_error))
                raise timeout_error from exc
            reason = (
                FailureReason.NOT_FOUND if isinstance(exc, NotFoundError) else FailureReason.ERROR
            )
            await self._fail_log(log_id, reason, str(exc) or type(exc).__name__)
            raise

        try:
            await self._complete_log(log_id, result)
        except PersistenceError as exc:
            message = f"Could not complete sync log: {exc}"
            await self._fail_log(log_id, FailureReason.ERROR, message)
            raise
        log.info(
            "Synced case %s: entities=%s users=%s/%s contacts=%s/%s participants=%s links=%s",
            case_id,
            result.entities_found,
            result.users_created,
            result.users_updated,
            result.contacts_created,
            result.contacts_updated,
            result.participants_added,
            result.primary_links_updated,
        )
        return result

    async def _run(self, case_id: UUID, log_id: UUID) -> CaseSyncResult:
        now = self.clock()
        async with self.unit_of_work_factory() as uow:
            case = await uow.repositories.cases.get(case_id)
            if case is None:
                raise CaseNotFoundError(case_id)

            candidates = extract_candidates(case)
            result = CaseSyncResult(
                case_id=case_id, log_id=log_id, entities_found=len(candidates)
            )
            for kind in (PersonKind.USER, PersonKind.CONTACT):
                for candidate in candidates:
                    if candidate.kind is kind:
                        await self._upsert(
                            candidate, case_id=case_id, uow=uow, result=result, now=now
                        )

            assignment = await assign_participants(candidates, case_id=case_id, uow=uow, now=now)
            result.participants_added = assignment.added
            result.candidate_errors.extend(assignment.errors)

            links = await update_primary_links(case, candidates, uow=uow, now=now)
            result.primary_links_updated = links.updated
            await uow.commit()

        await self._mark_case_synced(case_id)
        return result

    async def _upsert(
        self,
        candidate: CandidateEntity,
        *,
        case_id: UUID,
        uow: SyncUnitOfWork,
        result: CaseSyncResult,
        now: datetime,
    ) -> None:
        try:
            async with uow.savepoint():
                outcome = await upsert_candidate(candidate, case_id=case_id, uow=uow, now=now)
        except PersistenceError as exc:
            log.exception("Could not store %s for case %s", candidate.source, case_id)
            result.candidate_errors.append(f"{candidate.source}: {exc}")
            return
        result.record_upsert(candidate.kind, created=outcome.created)

    async def _mark_case_synced(self, case_id: UUID) -> None:
        try:
            async with self.unit_of_work_factory() as uow:
                case = await uow.repositories.cases.get(case_id)
                if case is None:
                    return
                case.mark_synced(self.clock())
                await uow.repositories.cases.save(case)
                await uow.commit()
        except PersistenceError:
            log.warning("Could not record sync timestamp for case %s", case_id, exc_info=True)

    async def _open_log(self, case_id: UUID, trigger: SyncTrigger) -> UUID:
        entry = SyncLogEntry(case_id=case_id, trigger=trigger, started_at=self.clock())
        async with self.unit_of_work_factory() as uow:
            await uow.repositories.sync_logs.add(entry)
            await uow.commit()
        return entry.id

    async def _complete_log(self, log_id: UUID, result: CaseSyncResult) -> None:
        async with self.unit_of_work_factory() as uow:
            entry = await uow.repositories.sync_logs.get(log_id)
            if entry is None:
                raise PersistenceError(f"Sync log {log_id} disappeared")
            entry.complete(result.counts(), now=self.clock())
            await uow.repositories.sync_logs.save(entry)
            await uow.commit()

    async def _fail_log(self, log_id: UUID, reason: FailureReason, message: str) -> None:
        # the original error is what the caller needs, so a failure here is only logged
        try:
            async with self.unit_of_work_factory() as uow:
                entry = await uow.repositories.sync_logs.get(log_id)
                if entry is None:
                    log.error("Sync log %s disappeared before it could be failed", log_id)
                    return
                entry.fail(reason, message, now=self.clock())
                await uow.repositories.sync_logs.save(entry)
                await uow.commit()
        except PersistenceError:
            log.exception("Could not mark sync log %s as failed (%s)", log_id, reason)
