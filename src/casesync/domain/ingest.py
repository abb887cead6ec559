"""Application service for pulling matters from the practice system onto cases."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from casesync.domain.model import Case, SourcePayload, utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from casesync.domain.ports.fetching import CaseSourceFetcher, SourceCaseRecord
    from casesync.domain.ports.unit_of_work import SyncUnitOfWorkFactory
    from casesync.domain.sync.orchestrator import Clock

log = getLogger(__name__)


@dataclass(slots=True)
class SyncSourceCasesResult:
    """Outcome of one raw-data sync."""

    fetched: int = 0
    created: int = 0
    updated: int = 0


async def sync_source_cases(
    *,
    fetcher: CaseSourceFetcher,
    unit_of_work_factory: SyncUnitOfWorkFactory,
    clock: Clock = utc_now,
) -> SyncSourceCasesResult:
    """Fetch every matter and insert or update the case with the same external id.

    ``ExternalSourceError`` from the fetcher aborts the run before anything is written.
    """

    records = await fetcher.fetch_matters()
    result = SyncSourceCasesResult(fetched=len(records))
    now = clock()

    async with unit_of_work_factory() as uow:
        cases = uow.repositories.cases
        for record in records:
            case = await cases.get_by_external_id(record.external_id)
            if case is None:
                case = Case(external_id=record.external_id, created_at=now, updated_at=now)
                _apply_record(case, record, now=now)
                await cases.add(case)
                result.created += 1
            else:
                _apply_record(case, record, now=now)
                await cases.save(case)
                result.updated += 1
        await uow.commit()

    log.info(
        "Source sync: fetched=%s created=%s updated=%s",
        result.fetched,
        result.created,
        result.updated,
    )
    return result


def _apply_record(case: Case, record: SourceCaseRecord, *, now: datetime) -> None:
    case.name = record.name
    case.external_status = record.status
    case.source = SourcePayload.from_raw(record.payload)
    case.buyer_1_name = record.buyer_1_name
    case.buyer_2_name = record.buyer_2_name
    case.seller_1_name = record.seller_1_name
    case.seller_2_name = record.seller_2_name
    case.bank = record.bank
    case.source_synced_at = now
    case.touch(now)
