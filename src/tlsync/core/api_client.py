"""HTTP client for the paginated user timeline endpoint.

The client issues exactly one signed GET per call and translates the outcome
into either a :class:`TimelinePage` or one of the domain exceptions. Retrying
is left to the caller: a :class:`RateLimitError` carries the reset time the
backoff controller needs, every other failure is final.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any
from uuid import uuid4

import requests
from requests import Response
from requests.auth import AuthBase
from requests.exceptions import RequestException

from tlsync.config.models import HTTPClientConfig
from tlsync.core.exceptions import RateLimitError, TimelinePayloadError, TimelineRequestError
from tlsync.core.logging import LogEvents, UnifiedLogger

__all__ = [
    "RATE_LIMIT_ERROR_CODE",
    "RateLimitStatus",
    "TimelinePage",
    "TimelineAPIClient",
    "parse_rate_limit_status",
]

RATE_LIMIT_ERROR_CODE = 88
"""API error code reported in the JSON body when the rate window is exhausted."""

_HEADER_LIMIT = "x-rate-limit-limit"
_HEADER_REMAINING = "x-rate-limit-remaining"
_HEADER_RESET = "x-rate-limit-reset"


@dataclass(frozen=True, slots=True)
class RateLimitStatus:
    """Rate window reported by ``x-rate-limit-*`` headers; fields are ``None`` when absent."""

    limit: int | None = None
    remaining: int | None = None
    reset_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TimelinePage:
    """One successful page: the raw items in API order plus the rate window."""

    items: list[dict[str, Any]]
    rate_limit: RateLimitStatus = field(default_factory=RateLimitStatus)

    def __len__(self) -> int:
        return len(self.items)


def _parse_int_header(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip()
    if not value.isascii() or not value.isdigit():
        return None
    try:
        return int(value)
    except ValueError:
        # longer than the interpreter's int conversion limit
        return None


def _parse_epoch(value: str | None) -> datetime | None:
    seconds = _parse_int_header(value)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_retry_after(value: str | None, *, now: datetime) -> datetime | None:
    """Resolve a ``Retry-After`` header (delta seconds or HTTP date) to an instant."""
    if not value or not value.strip():
        return None
    delay = _parse_int_header(value)
    if delay is not None:
        try:
            return now + timedelta(seconds=delay)
        except OverflowError:
            return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_rate_limit_status(headers: Mapping[str, str]) -> RateLimitStatus:
    """Extract the rate window from response headers."""

    return RateLimitStatus(
        limit=_parse_int_header(headers.get(_HEADER_LIMIT)),
        remaining=_parse_int_header(headers.get(_HEADER_REMAINING)),
        reset_at=_parse_epoch(headers.get(_HEADER_RESET)),
    )


def _error_codes(payload: Any) -> set[int]:
    """Return the numeric codes from an ``{"errors": [{"code": ...}]}`` body."""
    if not isinstance(payload, Mapping):
        return set()
    errors = payload.get("errors")
    if not isinstance(errors, list):
        return set()
    codes: set[int] = set()
    for entry in errors:
        if isinstance(entry, Mapping) and isinstance(entry.get("code"), int):
            codes.add(entry["code"])
    return codes


def _safe_json(response: Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class TimelineAPIClient:
    """Session-backed client for the user timeline endpoint."""

    def __init__(
        self,
        config: HTTPClientConfig,
        *,
        auth: AuthBase | None = None,
        session: requests.Session | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.url = config.base_url.rstrip("/") + "/" + config.timeline_path.lstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(dict(config.headers))
        if auth is not None:
            self._session.auth = auth
        self._timeout = (config.connect_timeout_sec, config.read_timeout_sec)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = UnifiedLogger.get(__name__).bind(component="http_client")

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "TimelineAPIClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    def fetch_page(self, params: Mapping[str, Any]) -> TimelinePage:
        """Issue one GET for ``params`` and return the decoded page.

        Raises
        ------
        RateLimitError
            On HTTP 429 or an error body carrying code 88.
        TimelineRequestError
            On transport failures and unexpected HTTP statuses.
        TimelinePayloadError
            When a successful response is not a JSON list of objects.
        """

        request_id = str(uuid4())
        start = time.perf_counter()
        try:
            response = self._session.get(self.url, params=dict(params), timeout=self._timeout)
        except RequestException as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            self._logger.warning(
                LogEvents.HTTP_REQUEST_EXCEPTION,
                endpoint=self.url,
                duration_ms=duration_ms,
                request_id=request_id,
                error=str(exc),
            )
            raise TimelineRequestError(
                f"Request failed: {exc}", url=self.url, cause=exc
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000
        status_code = response.status_code

        if status_code >= 400:
            body = _safe_json(response)
            if status_code == 429 or RATE_LIMIT_ERROR_CODE in _error_codes(body):
                reset_at = self._resolve_reset(response)
                self._logger.warning(
                    LogEvents.HTTP_RATE_LIMIT_HIT,
                    endpoint=self.url,
                    status_code=status_code,
                    reset_at=reset_at.isoformat(),
                    request_id=request_id,
                )
                raise RateLimitError(
                    "Rate limit exceeded",
                    reset_at=reset_at,
                    url=response.url or self.url,
                    status_code=status_code,
                )
            self._logger.error(
                LogEvents.HTTP_REQUEST_FAILED,
                endpoint=self.url,
                duration_ms=duration_ms,
                status_code=status_code,
                request_id=request_id,
            )
            raise TimelineRequestError(
                f"Unexpected HTTP status {status_code}",
                url=response.url or self.url,
                status_code=status_code,
            )

        rate_limit = parse_rate_limit_status(response.headers)
        self._logger.info(
            LogEvents.HTTP_REQUEST_COMPLETED,
            endpoint=self.url,
            duration_ms=duration_ms,
            status_code=status_code,
            rate_limit_remaining=rate_limit.remaining,
            request_id=request_id,
        )
        return TimelinePage(items=self._decode_items(response), rate_limit=rate_limit)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_reset(self, response: Response) -> datetime:
        """Reset time from ``x-rate-limit-reset``, then ``Retry-After``, else now."""
        now = self._clock()
        reset_at = _parse_epoch(response.headers.get(_HEADER_RESET))
        if reset_at is None:
            reset_at = _parse_retry_after(response.headers.get("Retry-After"), now=now)
        return reset_at or now

    def _decode_items(self, response: Response) -> list[dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError as exc:
            self._logger.error(
                LogEvents.HTTP_PAYLOAD_INVALID,
                endpoint=self.url,
                reason="not_json",
            )
            raise TimelinePayloadError(
                "Response body is not valid JSON",
                url=response.url or self.url,
                status_code=response.status_code,
                cause=exc,
            ) from exc
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            self._logger.error(
                LogEvents.HTTP_PAYLOAD_INVALID,
                endpoint=self.url,
                reason="not_a_list_of_objects",
                payload_type=type(payload).__name__,
            )
            raise TimelinePayloadError(
                "Response body is not a list of objects",
                url=response.url or self.url,
                status_code=response.status_code,
            )
        return payload
