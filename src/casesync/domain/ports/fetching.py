"""Ports for fetching raw case records from the practice system."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, kw_only=True)
class SourceCaseRecord:
    """One matter as delivered by the practice system, ready to be stored on a case."""

    external_id: str
    name: str
    status: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    buyer_1_name: str | None = None
    buyer_2_name: str | None = None
    seller_1_name: str | None = None
    seller_2_name: str | None = None
    bank: str | None = None
    updated_at: datetime | None = None


@runtime_checkable
class CaseSourceFetcher(Protocol):
    """Async port for retrieving every matter from the external system."""

    async def fetch_matters(self) -> list[SourceCaseRecord]: ...


__all__ = ["CaseSourceFetcher", "SourceCaseRecord"]
