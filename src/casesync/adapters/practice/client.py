"""HTTP client for the practice-management API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import httpx
from pydantic import ValidationError

from casesync.config.practice import get_practice_config
from casesync.domain.ports.fetching import CaseSourceFetcher

from .errors import PracticeAPIError
from .tokens import ClientFactory, TokenManager, default_client_factory
from .translator import parse_matter

if TYPE_CHECKING:
    from casesync.adapters.http_resilience import ResilientClient
    from casesync.config.practice import PracticeConfig
    from casesync.domain.ports.fetching import SourceCaseRecord

log = getLogger(__name__)

MATTERS_RESOURCE = "matters"

type RawRecord = dict[str, Any]


@dataclass(slots=True)
class PracticeClient:
    """Paged reads against the practice API with one token refresh per page on 401."""

    config: PracticeConfig = field(default_factory=get_practice_config)
    client_factory: ClientFactory = default_client_factory
    tokens: TokenManager | None = None

    def __post_init__(self) -> None:
        if self.tokens is None:
            self.tokens = TokenManager(self.config, client_factory=self.client_factory)

    @property
    def token_manager(self) -> TokenManager:
        return cast(TokenManager, self.tokens)

    async def fetch_all(self, resource: str) -> list[RawRecord]:
        """Every record of ``resource``, requesting pages until one comes back short."""

        records: list[RawRecord] = []
        page = 1
        async with self.client_factory(self.config.resilience) as client:
            while True:
                batch = await self._get_page(client, resource, page)
                records.extend(batch)
                log.debug("Fetched %s page %s: %s records", resource, page, len(batch))
                if len(batch) < self.config.page_size:
                    break
                page += 1
        log.info("Fetched %s %s records", len(records), resource)
        return records

    async def _get_page(
        self, client: ResilientClient, resource: str, page: int
    ) -> list[RawRecord]:
        params = {"page": page, "limit": self.config.page_size}
        token = await self.token_manager.access_token()
        response = await self._get(client, resource, params, token)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.info("Access token rejected on %s page %s, refreshing", resource, page)
            refreshed = await self.token_manager.refresh(stale=token)
            response = await self._get(client, resource, params, refreshed.access_token)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                raise PracticeAPIError(
                    f"Unauthorized fetching {resource} after token refresh",
                    status_code=response.status_code,
                )
        if response.is_error:
            raise PracticeAPIError(
                f"Fetching {resource} page {page} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return _records_from(response, resource)

    async def _get(
        self,
        client: ResilientClient,
        resource: str,
        params: dict[str, int],
        token: str,
    ) -> httpx.Response:
        try:
            return await client.get(
                resource, params=params, headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.HTTPError as exc:
            raise PracticeAPIError(f"Fetching {resource} failed: {exc}") from exc


def _records_from(response: httpx.Response, resource: str) -> list[RawRecord]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise PracticeAPIError(f"Non-JSON response for {resource}") from exc
    match payload:
        case None:
            return []
        case list():
            return [cast(RawRecord, item) for item in payload if isinstance(item, dict)]
        case _:
            raise PracticeAPIError(f"Unexpected {resource} payload: {type(payload).__name__}")


@dataclass(slots=True)
class PracticeMatterFetcher:
    client: PracticeClient = field(default_factory=PracticeClient)

    async def fetch_matters(self) -> list[SourceCaseRecord]:
        records: list[SourceCaseRecord] = []
        for raw in await self.client.fetch_all(MATTERS_RESOURCE):
            try:
                records.append(parse_matter(raw))
            except ValidationError:
                log.warning("Skipping matter without a usable id: %r", raw.get("id"))
        return records


if TYPE_CHECKING:
    _fetcher_check: CaseSourceFetcher = PracticeMatterFetcher()
