"""Domain exceptions raised by the tlsync core.

The hierarchy mirrors how the fetch run treats each failure:

- :class:`ConfigError` and :class:`CredentialsError` are fatal at startup and
  abort before any network activity.
- :class:`RateLimitError` is transient; the pagination engine absorbs it by
  sleeping until the reported reset time and retrying the same request.
- :class:`TimelineRequestError` and :class:`TimelinePayloadError` abort the
  run, but the cursor of the last successfully written item is still saved.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

__all__ = [
    "TimelineSyncError",
    "ConfigError",
    "CredentialsError",
    "TimelineRequestError",
    "RateLimitError",
    "TimelinePayloadError",
]


class TimelineSyncError(Exception):
    """Base class for tlsync domain errors."""

    pass


class ConfigError(TimelineSyncError):
    """Raised when configuration files, flags or overrides are invalid."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class CredentialsError(ConfigError):
    """Raised when the credentials file is missing or malformed."""

    pass


class TimelineRequestError(TimelineSyncError):
    """Raised when a timeline request fails for a reason other than rate limiting."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a mapping suitable for structured logging."""

        return {
            "error": str(self),
            "url": self.url,
            "status_code": self.status_code,
            "cause": str(self.cause) if self.cause else None,
        }


class RateLimitError(TimelineRequestError):
    """Raised when the API rejects a request because the rate window is exhausted."""

    def __init__(
        self,
        message: str,
        *,
        reset_at: datetime,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=status_code)
        self.reset_at = reset_at

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["reset_at"] = self.reset_at.isoformat()
        return payload


class TimelinePayloadError(TimelineRequestError):
    """Raised when a response body cannot be interpreted as a page of items."""

    pass
