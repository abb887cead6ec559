"""OAuth access tokens for the practice API.

Tokens are refreshed with the ``refresh_token`` grant a few minutes before
they expire, and the latest token set is kept in a small JSON file so that a
restarted process does not spend a refresh on every start.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from casesync.adapters.http_resilience import ResilientClient
from casesync.config.practice import DEFAULT_TOKEN_LIFETIME_SECONDS
from casesync.domain.model import utc_now

from .errors import TokenRefreshError
from .schema import ErrorResponse, TokenResponse

if TYPE_CHECKING:
    from pathlib import Path

    from casesync.config.http_resilience import ResilienceConfig
    from casesync.config.practice import PracticeConfig
    from casesync.domain.sync.orchestrator import Clock

log = getLogger(__name__)

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(frozen=True, slots=True)
class TokenSet:
    access_token: str
    refresh_token: str
    expires_at: datetime | None = None

    def needs_refresh(self, now: datetime, *, buffer: timedelta) -> bool:
        # a token without a known expiry is used until the API answers 401
        if self.expires_at is None:
            return False
        return now >= self.expires_at - buffer

    def to_json(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> TokenSet:
        expires_at = data.get("expires_at")
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(data["refresh_token"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )


def load_token_cache(path: Path) -> TokenSet | None:
    if not path.exists():
        return None
    try:
        return TokenSet.from_json(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, KeyError, TypeError):
        log.warning("Ignoring unreadable token cache at %s", path, exc_info=True)
        return None


def save_token_cache(path: Path, token: TokenSet) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(token.to_json(), indent=2), encoding="utf-8")


@dataclass(slots=True)
class TokenManager:
    config: PracticeConfig
    client_factory: ClientFactory = default_client_factory
    clock: Clock = utc_now
    _token: TokenSet | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def buffer(self) -> timedelta:
        return timedelta(seconds=self.config.expiry_buffer_seconds)

    def current(self) -> TokenSet | None:
        if self._token is None:
            self._token = self._initial_token()
        return self._token

    async def access_token(self) -> str:
        token = self.current()
        if token is None or token.needs_refresh(self.clock(), buffer=self.buffer):
            token = await self.refresh()
        return token.access_token

    async def refresh(self, *, stale: str | None = None) -> TokenSet:
        """Exchange the refresh token for a new access token.

        ``stale`` names the access token the caller saw rejected; if another
        task already replaced it, the newer token is returned without a second
        round trip.
        """

        async with self._lock:
            current = self.current()
            if (
                stale is not None
                and current is not None
                and current.access_token != stale
                and not current.needs_refresh(self.clock(), buffer=self.buffer)
            ):
                return current

            refresh_token = (
                current.refresh_token if current else self.config.credentials.refresh_token
            )
            token = await self._request_token(refresh_token)
            self._token = token
            if self.config.token_cache_path is not None:
                save_token_cache(self.config.token_cache_path, token)
            log.info("Refreshed practice API access token (expires %s)", token.expires_at)
            return token

    def _initial_token(self) -> TokenSet | None:
        if self.config.token_cache_path is not None:
            cached = load_token_cache(self.config.token_cache_path)
            if cached is not None:
                return cached
        credentials = self.config.credentials
        if credentials.access_token:
            return TokenSet(
                access_token=credentials.access_token,
                refresh_token=credentials.refresh_token,
            )
        return None

    async def _request_token(self, refresh_token: str) -> TokenSet:
        credentials = self.config.credentials
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        try:
            async with self.client_factory(self.config.token_resilience) as client:
                response = await client.post(
                    self.config.token_url,
                    data=form,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise TokenRefreshError(f"Token endpoint unreachable: {exc}") from exc

        if response.is_error:
            detail = _error_detail(response)
            log.error("Token refresh rejected with %s: %s", response.status_code, detail)
            raise TokenRefreshError(
                f"Token refresh failed: {detail}", status_code=response.status_code
            )

        try:
            payload = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TokenRefreshError("Token endpoint returned an unexpected payload") from exc

        lifetime = payload.expires_in or DEFAULT_TOKEN_LIFETIME_SECONDS
        return TokenSet(
            access_token=payload.access_token,
            refresh_token=payload.refresh_token or refresh_token,
            expires_at=self.clock() + timedelta(seconds=lifetime),
        )


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = ErrorResponse.model_validate(response.json()).detail
    except (ValueError, ValidationError):
        detail = None
    return detail or response.reason_phrase or f"HTTP {response.status_code}"
