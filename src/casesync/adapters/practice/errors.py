from __future__ import annotations

from casesync.domain.errors import ExternalSourceError


class PracticeAPIError(ExternalSourceError):
    """Raised when the practice API rejects a request or returns an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TokenRefreshError(PracticeAPIError):
    """Raised when a new access token cannot be obtained."""
