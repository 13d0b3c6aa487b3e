"""HTTP client configuration models."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat


class HTTPClientConfig(BaseModel):
    """Configuration for the timeline API client."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(
        default="https://api.twitter.com",
        description="Scheme and host of the timeline API.",
    )
    timeline_path: str = Field(
        default="/1.1/statuses/user_timeline.json",
        description="Path of the user timeline endpoint, joined to ``base_url``.",
    )
    connect_timeout_sec: PositiveFloat = Field(
        default=15.0,
        description="Connection timeout in seconds.",
    )
    read_timeout_sec: PositiveFloat = Field(
        default=60.0,
        description="Socket read timeout in seconds.",
    )
    headers: Mapping[str, str] = Field(
        default_factory=lambda: {
            "User-Agent": "tlsync/0.3 (TimelineAPIClient)",
            "Accept": "application/json",
        },
        description="Default headers that will be sent with each request.",
    )


class BackoffConfig(BaseModel):
    """Rate-limit backoff policy."""

    model_config = ConfigDict(extra="forbid")

    min_wait_sec: PositiveFloat = Field(
        default=10.0,
        description="Lower bound on any rate-limit sleep, in seconds.",
    )
    pad_sec: float = Field(
        default=1.0,
        ge=0.0,
        description="Safety margin added past the reported reset time, in seconds.",
    )
