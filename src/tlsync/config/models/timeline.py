"""Timeline fetch and filesystem configuration models."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

MAX_CURSOR_ID = 2**64 - 1


class TimelineConfig(BaseModel):
    """What to fetch and how much of it."""

    model_config = ConfigDict(extra="forbid")

    screen_name: str = Field(
        default="twitterapi",
        min_length=1,
        description="Account whose timeline is downloaded.",
    )
    count: PositiveInt = Field(
        default=100,
        description="Page size requested from the API.",
    )
    batch: PositiveInt = Field(
        default=10,
        description="Reported for compatibility with older invocations; not used for paging.",
    )
    total: PositiveInt = Field(
        default=10,
        description="Maximum number of items written in a single run.",
    )
    since: str = Field(
        default="",
        description="Explicit lower-exclusive id bound; empty means use the saved cursor.",
    )
    extra_params: Mapping[str, str] = Field(
        default_factory=dict,
        description="Fixed query parameters appended to every page request.",
    )

    @field_validator("screen_name", "since", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("since")
    @classmethod
    def _validate_since(cls, value: str) -> str:
        """Accept an empty string or an unsigned 64-bit decimal id."""
        normalized = value.strip()
        if not normalized:
            return ""
        if (
            not normalized.isascii()
            or not normalized.isdigit()
            or int(normalized) > MAX_CURSOR_ID
        ):
            msg = f"since must be an unsigned decimal id, got {value!r}"
            raise ValueError(msg)
        return normalized

    @property
    def since_id(self) -> int | None:
        return int(self.since) if self.since else None


class PathsConfig(BaseModel):
    """Filesystem locations used by a run."""

    model_config = ConfigDict(extra="forbid")

    output_prefix: str = Field(
        default="content/user_timeline",
        min_length=1,
        description="Item files are written as ``<output_prefix>_<id>.json``.",
    )
    cursor_file: Path = Field(
        default=Path("content/last_id"),
        description="File holding the id of the last item written by the previous run.",
    )
    credentials_file: Path = Field(
        default=Path("CREDENTIALS"),
        description="Four-line file with consumer key/secret and access token/secret.",
    )


class LoggingConfig(BaseModel):
    """Structured logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Log level for UnifiedLogger.")
    format: Literal["json", "key_value"] = Field(
        default="key_value",
        description="Log format (json, key_value).",
    )
