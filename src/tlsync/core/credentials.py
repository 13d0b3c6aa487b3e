"""Loading of the OAuth 1.0a credentials file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from requests_oauthlib import OAuth1

from tlsync.core.exceptions import CredentialsError
from tlsync.core.logging import LogEvents, UnifiedLogger

__all__ = ["Credentials", "load_credentials"]

_REQUIRED_LINES = 4


@dataclass(frozen=True, slots=True)
class Credentials:
    """Consumer and access-token pairs used to sign every request."""

    consumer_key: str
    consumer_secret: str = field(repr=False)
    access_token: str = field(repr=False)
    access_token_secret: str = field(repr=False)

    def to_auth(self) -> OAuth1:
        """Return a ``requests`` auth hook that signs requests with HMAC-SHA1."""
        return OAuth1(
            self.consumer_key,
            client_secret=self.consumer_secret,
            resource_owner_key=self.access_token,
            resource_owner_secret=self.access_token_secret,
        )


def load_credentials(path: Path) -> Credentials:
    """Read four newline-separated secrets from ``path``.

    The file holds, in order: consumer key, consumer secret, access token and
    access token secret. Surrounding whitespace on each line is ignored.

    Raises
    ------
    CredentialsError
        When the file cannot be read or has fewer than four non-empty lines.
    """

    logger = UnifiedLogger.get(__name__)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error(LogEvents.CREDENTIALS_LOAD_FAILED, path=str(path), error=exc.strerror)
        raise CredentialsError(
            f"Could not read credentials file: {exc.strerror}", source=str(path)
        ) from exc

    lines = [line.strip() for line in text.splitlines()]
    values = lines[:_REQUIRED_LINES]
    if len(values) < _REQUIRED_LINES or not all(values):
        logger.error(
            LogEvents.CREDENTIALS_LOAD_FAILED,
            path=str(path),
            error="expected four non-empty lines",
        )
        raise CredentialsError(
            "Credentials file must contain four non-empty lines: consumer key, "
            "consumer secret, access token, access token secret",
            source=str(path),
        )
    return Credentials(*values)
