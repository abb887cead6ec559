"""Public interface for the practice-management API adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import MATTERS_RESOURCE, PracticeClient, PracticeMatterFetcher
from .errors import PracticeAPIError, TokenRefreshError
from .schema import MatterPayload, TokenResponse
from .tokens import TokenManager, TokenSet, default_client_factory
from .translator import TEXT_FIELD_LABELS, parse_matter

if TYPE_CHECKING:
    from casesync.config.practice import PracticeConfig

    from .tokens import ClientFactory


def build_practice_fetcher(
    *,
    config: PracticeConfig | None = None,
    client_factory: ClientFactory = default_client_factory,
) -> PracticeMatterFetcher:
    """Matter fetcher wired from ``config`` or, by default, from the environment."""

    if config is None:
        return PracticeMatterFetcher(PracticeClient(client_factory=client_factory))
    return PracticeMatterFetcher(PracticeClient(config=config, client_factory=client_factory))


__all__ = [
    "MATTERS_RESOURCE",
    "TEXT_FIELD_LABELS",
    "MatterPayload",
    "PracticeAPIError",
    "PracticeClient",
    "PracticeMatterFetcher",
    "TokenManager",
    "TokenRefreshError",
    "TokenResponse",
    "TokenSet",
    "build_practice_fetcher",
    "default_client_factory",
    "parse_matter",
]
