"""Error reporting for the ``tlsync`` command line.

A failure class is described by a template that pairs a stable error code
with the exit status of the process. Reporting an error logs one structured
event and prints ``[tlsync] ERROR E00x: <message>`` to stderr.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NoReturn

import typer

from tlsync.core.exit_codes import ExitCode
from tlsync.core.logging import LogEvents, UnifiedLogger
from tlsync.core.runtime import cli_feedback

__all__ = [
    "CliErrorTemplate",
    "CLI_ERROR_CONFIG",
    "CLI_ERROR_HTTP",
    "CLI_ERROR_IO",
    "emit_cli_error",
    "emit_cli_error_and_exit",
]


@dataclass(frozen=True, slots=True)
class CliErrorTemplate:
    code: str
    label: str
    exit_code: ExitCode


CLI_ERROR_CONFIG = CliErrorTemplate("E001", "configuration_error", ExitCode.CONFIG_ERROR)
CLI_ERROR_HTTP = CliErrorTemplate("E002", "http_error", ExitCode.HTTP_ERROR)
CLI_ERROR_IO = CliErrorTemplate("E003", "io_error", ExitCode.IO_ERROR)


def emit_cli_error(
    template: CliErrorTemplate,
    message: str,
    *,
    event: LogEvents = LogEvents.CLI_RUN_ERROR,
    context: Mapping[str, Any] | None = None,
) -> None:
    """Log ``message`` as ``event`` and print it with the template's code."""

    fields = dict(context or {})
    fields.update(error_code=template.code, error_label=template.label)
    fields.setdefault("error", message)
    UnifiedLogger.get(__name__).error(event, **fields)
    cli_feedback.emit_error(f"{template.code}: {message}")


def emit_cli_error_and_exit(
    template: CliErrorTemplate,
    message: str,
    *,
    event: LogEvents = LogEvents.CLI_RUN_ERROR,
    context: Mapping[str, Any] | None = None,
    cause: BaseException | None = None,
) -> NoReturn:
    """Report the error, then end the command with ``template.exit_code``."""

    emit_cli_error(template, message, event=event, context=context)
    raise typer.Exit(code=int(template.exit_code)) from cause
