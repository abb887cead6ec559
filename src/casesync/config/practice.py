"""Practice-management API configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import env_float, optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import get_storage_config

PRACTICE_BASE_URL = "https://app.practicepanther.com/api/v2"
PRACTICE_TOKEN_URL = "https://app.practicepanther.com/OAuth/Token"
PRACTICE_PAGE_SIZE = 100
PRACTICE_TIMEOUT_SECONDS = 30.0
# access tokens are refreshed this long before their advertised expiry
TOKEN_EXPIRY_BUFFER_SECONDS = 300.0
DEFAULT_TOKEN_LIFETIME_SECONDS = 86_400


@dataclass(frozen=True, slots=True)
class PracticeCredentials:
    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str | None = None


@dataclass(frozen=True)
class PracticeConfig:
    """Holds practice API configuration values."""

    credentials: PracticeCredentials
    token_url: str
    resilience: ResilienceConfig
    token_resilience: ResilienceConfig
    page_size: int = PRACTICE_PAGE_SIZE
    token_cache_path: Path | None = None
    expiry_buffer_seconds: float = TOKEN_EXPIRY_BUFFER_SECONDS


def _cache_for_ttl(ttl_seconds: float | None) -> CacheConfig | None:
    if not ttl_seconds:
        return None
    return CacheConfig(backend="memory", default_ttl_seconds=ttl_seconds)


def get_practice_config(*, resilience: ResilienceConfig | None = None) -> PracticeConfig:
    values = require_env_vars(
        ("PRACTICE_CLIENT_ID", "PRACTICE_CLIENT_SECRET", "PRACTICE_REFRESH_TOKEN")
    )
    base_url = optional_env_var("PRACTICE_BASE_URL") or PRACTICE_BASE_URL
    token_url = optional_env_var("PRACTICE_TOKEN_URL") or PRACTICE_TOKEN_URL
    cache_path = optional_env_var("PRACTICE_TOKEN_CACHE_PATH")
    cache_ttl = env_float("PRACTICE_HTTP_CACHE_TTL", default=None)

    return PracticeConfig(
        credentials=PracticeCredentials(
            client_id=values["PRACTICE_CLIENT_ID"],
            client_secret=values["PRACTICE_CLIENT_SECRET"],
            refresh_token=values["PRACTICE_REFRESH_TOKEN"],
            access_token=optional_env_var("PRACTICE_ACCESS_TOKEN"),
        ),
        token_url=token_url,
        resilience=resilience
        or ResilienceConfig(
            name="practice",
            base_url=base_url.rstrip("/") + "/",
            timeout_seconds=PRACTICE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache=_cache_for_ttl(cache_ttl),
            default_headers={"Accept": "application/json"},
        ),
        token_resilience=ResilienceConfig(
            name="practice-oauth",
            timeout_seconds=PRACTICE_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=2),
        ),
        token_cache_path=(
            Path(cache_path) if cache_path else get_storage_config().token_cache_path()
        ),
    )
