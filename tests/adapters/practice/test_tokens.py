from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import httpx
import pytest

from casesync.adapters.practice import TokenManager, TokenRefreshError, TokenSet
from casesync.adapters.practice.tokens import load_token_cache, save_token_cache
from tests.helpers.cases import FrozenClock
from tests.support.practice import make_practice_config

if TYPE_CHECKING:
    from pathlib import Path

    from tests.support.practice import FakePracticeAPI


def _manager(
    tmp_path: Path,
    api: FakePracticeAPI,
    clock: FrozenClock,
    *,
    access_token: str | None = None,
) -> TokenManager:
    config = make_practice_config(tmp_path, access_token=access_token)
    return TokenManager(config, client_factory=api.client_factory, clock=clock)


def test_token_without_expiry_never_needs_refresh(clock: FrozenClock) -> None:
    token = TokenSet(access_token="a", refresh_token="r")

    assert not token.needs_refresh(clock.now, buffer=timedelta(minutes=5))


def test_refresh_happens_inside_the_expiry_buffer(clock: FrozenClock) -> None:
    expires_at = clock.now + timedelta(minutes=4)
    token = TokenSet(access_token="a", refresh_token="r", expires_at=expires_at)

    assert token.needs_refresh(clock.now, buffer=timedelta(minutes=5))
    assert not token.needs_refresh(clock.now, buffer=timedelta(minutes=3))


def test_missing_token_is_fetched_with_default_lifetime(
    tmp_path: Path, practice_api: FakePracticeAPI, clock: FrozenClock
) -> None:
    practice_api.token_responses.append(
        httpx.Response(200, json={"access_token": "new", "refresh_token": "refresh-2"})
    )
    manager = _manager(tmp_path, practice_api, clock)

    assert asyncio.run(manager.access_token()) == "new"

    current = manager.current()
    assert current is not None
    assert current.refresh_token == "refresh-2"
    assert current.expires_at == clock.now + timedelta(seconds=86_400)


def test_cached_token_is_reused_across_managers(
    tmp_path: Path, practice_api: FakePracticeAPI, clock: FrozenClock
) -> None:
    first = _manager(tmp_path, practice_api, clock)
    asyncio.run(first.access_token())

    second = _manager(tmp_path, practice_api, clock)

    assert asyncio.run(second.access_token()) == "fresh-token"
    assert len(practice_api.token_forms) == 1


def test_expiring_cached_token_is_refreshed_with_its_refresh_token(
    tmp_path: Path, practice_api: FakePracticeAPI, clock: FrozenClock
) -> None:
    save_token_cache(
        tmp_path / "token.json",
        TokenSet(
            access_token="old",
            refresh_token="refresh-cached",
            expires_at=clock.now + timedelta(minutes=1),
        ),
    )
    manager = _manager(tmp_path, practice_api, clock)

    assert asyncio.run(manager.access_token()) == "fresh-token"
    assert practice_api.token_forms[0]["refresh_token"] == "refresh-cached"


def test_concurrent_refreshes_share_one_request(
    tmp_path: Path, practice_api: FakePracticeAPI, clock: FrozenClock
) -> None:
    manager = _manager(tmp_path, practice_api, clock, access_token="stale-token")

    async def scenario() -> list[TokenSet]:
        return list(
            await asyncio.gather(
                manager.refresh(stale="stale-token"), manager.refresh(stale="stale-token")
            )
        )

    first, second = asyncio.run(scenario())

    assert first.access_token == second.access_token == "fresh-token"
    assert len(practice_api.token_forms) == 1


def test_unparseable_token_response_is_an_error(
    tmp_path: Path, practice_api: FakePracticeAPI, clock: FrozenClock
) -> None:
    practice_api.token_responses.append(httpx.Response(200, json={"token": "missing"}))
    manager = _manager(tmp_path, practice_api, clock)

    with pytest.raises(TokenRefreshError, match="unexpected payload"):
        asyncio.run(manager.refresh())


def test_corrupt_token_cache_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "token.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_token_cache(path) is None
    assert load_token_cache(tmp_path / "absent.json") is None
