"""Structured logging for tlsync runs.

Components log ``LogEvents`` members through :class:`UnifiedLogger`; the event
is rendered under the ``message`` key as its dotted name. The CLI binds the
run context (``run_id``, ``screen_name``, ``component``) once per run through
context variables, and events logged without it carry a ``missing_context``
list. OAuth secrets are masked before rendering. Output goes to stderr so
stdout stays reserved for progress lines.
"""
from __future__ import annotations

import logging
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars
from structlog.stdlib import BoundLogger

__all__ = [
    "LogFormat",
    "LogConfig",
    "MANDATORY_FIELDS",
    "REDACTED",
    "UnifiedLogger",
]

EventDict = MutableMapping[str, Any]


class LogFormat(str, Enum):
    """Supported output formats for the renderer."""

    JSON = "json"
    KEY_VALUE = "key_value"


MANDATORY_FIELDS: Sequence[str] = ("run_id", "screen_name", "component")
REDACTED = "***REDACTED***"

_ROOT_LOGGER = "tlsync"
_KEY_ORDER: Sequence[str] = ("timestamp", "level", "component", "screen_name", "run_id", "message")


@dataclass(frozen=True, slots=True)
class LogConfig:
    """User configurable logging parameters."""

    level: int | str = logging.INFO
    format: LogFormat = LogFormat.KEY_VALUE
    redact_fields: Sequence[str] = (
        "consumer_secret",
        "access_token",
        "access_token_secret",
        "authorization",
    )

    @property
    def numeric_level(self) -> int:
        if isinstance(self.level, int):
            return self.level
        level = logging.getLevelNamesMapping().get(self.level.upper())
        if level is None:
            raise ValueError(f"Unsupported log level: {self.level}")
        return level


def _event_name(_: Any, __: str, event_dict: EventDict) -> EventDict:
    event = event_dict.get("event")
    if isinstance(event, Enum):
        event_dict["event"] = str(event.value)
    return event_dict


def _flag_missing_context(_: Any, __: str, event_dict: EventDict) -> EventDict:
    missing = [field for field in MANDATORY_FIELDS if field not in event_dict]
    if missing:
        event_dict.setdefault("missing_context", missing)
    return event_dict


class _Redactor:
    """Replaces the values of secret-bearing keys."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = frozenset(fields)

    def __call__(self, _: Any, __: str, event_dict: EventDict) -> EventDict:
        for key in self.fields.intersection(event_dict):
            event_dict[key] = REDACTED
        return event_dict


def _renderer(format: LogFormat) -> Any:
    if format is LogFormat.JSON:
        return structlog.processors.JSONRenderer(sort_keys=True, ensure_ascii=False)
    return structlog.processors.KeyValueRenderer(
        key_order=_KEY_ORDER,
        sort_keys=False,
        drop_missing=True,
    )


class UnifiedLogger:
    """Entry point for configuring and obtaining loggers."""

    @staticmethod
    def configure(config: LogConfig | None = None) -> None:
        """Route structlog and stdlib records through one stderr handler."""

        cfg = config or LogConfig()
        level = cfg.numeric_level
        shared = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            _event_name,
            _flag_missing_context,
            structlog.processors.EventRenamer("message"),
            _Redactor(cfg.redact_fields),
            structlog.processors.format_exc_info,
        ]

        handler = logging.StreamHandler()
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _renderer(cfg.format),
                ],
            )
        )
        logging.basicConfig(handlers=[handler], level=level, force=True)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *shared,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def get(name: str | None = None) -> BoundLogger:
        return structlog.stdlib.get_logger(name or _ROOT_LOGGER)

    @staticmethod
    def bind(**context: Any) -> None:
        """Attach ``context`` to every event logged from now on."""

        bind_contextvars(**context)

    @staticmethod
    def reset() -> None:
        clear_contextvars()
