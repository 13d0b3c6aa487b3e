"""Typer application for the tlsync command line.

Console entry points should target :func:`tlsync.cli.app.run`.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

import typer

from tlsync import __version__
from tlsync.config import TimelineSyncConfig, load_config, parse_set_overrides
from tlsync.core.api_client import RateLimitStatus, TimelineAPIClient
from tlsync.core.backoff import RateLimitBackoff
from tlsync.core.credentials import load_credentials
from tlsync.core.cursor_store import FileCursorStore
from tlsync.core.exceptions import ConfigError, CredentialsError
from tlsync.core.exit_codes import ExitCode
from tlsync.core.logger import LogConfig, LogFormat
from tlsync.core.logging import LogEvents, UnifiedLogger
from tlsync.core.pagination import (
    PaginationCallbacks,
    PaginationState,
    RunResult,
    RunState,
    TimelinePaginator,
)
from tlsync.core.runtime import ShutdownSignal, cli_feedback
from tlsync.core.runtime.cli_errors import (
    CLI_ERROR_CONFIG,
    CLI_ERROR_HTTP,
    CLI_ERROR_IO,
    emit_cli_error,
    emit_cli_error_and_exit,
)
from tlsync.core.sink import JsonFileSink

__all__ = ["app", "run"]

app = typer.Typer(
    name="tlsync",
    help="Incrementally archive a user timeline as one JSON file per item.",
    add_completion=False,
)


@app.callback()
def main() -> None:
    """tlsync command-line interface."""


@app.command(name="version")
def version() -> None:
    """Print the installed tlsync version."""

    cli_feedback.emit_line(__version__)


def _flag_overrides(
    *,
    screen_name: str | None,
    out: str | None,
    count: int | None,
    batch: int | None,
    total: int | None,
    since: str | None,
    cursor_file: Path | None,
    credentials: Path | None,
    log_format: LogFormat | None,
) -> dict[str, Any]:
    """Map explicitly passed flags onto dotted configuration keys."""

    return {
        "timeline.screen_name": screen_name,
        "timeline.count": count,
        "timeline.batch": batch,
        "timeline.total": total,
        "timeline.since": since,
        "paths.output_prefix": out,
        "paths.cursor_file": cursor_file,
        "paths.credentials_file": credentials,
        "logging.format": log_format.value if log_format is not None else None,
    }


def _configure_logging(config: TimelineSyncConfig, *, verbose: bool) -> None:
    level = "DEBUG" if verbose else config.logging.level
    UnifiedLogger.configure(LogConfig(level=level, format=LogFormat(config.logging.format)))


def _progress_callbacks() -> PaginationCallbacks:
    def on_page(items: int, rate_limit: RateLimitStatus, state: RunState) -> None:
        remaining = rate_limit.remaining if rate_limit.remaining is not None else "unknown"
        cli_feedback.emit_progress(
            f"Got {items} items, {remaining} calls available, "
            f"total {state.written} items so far of {state.cap} set."
        )

    def on_item_written(item_id: int, state: RunState) -> None:
        cli_feedback.emit_progress(f"Total = {state.written} of {state.cap} total set.")

    def on_rate_limited(reset_at: datetime, wait_seconds: float) -> None:
        cli_feedback.emit_progress(
            f"Rate limited. Reset at {reset_at.isoformat()}. Waiting {wait_seconds:.0f}s"
        )

    def on_end_of_timeline(state: RunState) -> None:
        cli_feedback.emit_progress("No more results, end of timeline.")

    def on_cap_reached(state: RunState) -> None:
        cli_feedback.emit_progress("Reached set total limit.")

    return PaginationCallbacks(
        on_page=on_page,
        on_item_written=on_item_written,
        on_rate_limited=on_rate_limited,
        on_end_of_timeline=on_end_of_timeline,
        on_cap_reached=on_cap_reached,
    )


def _exit_code_for(result: RunResult) -> ExitCode:
    if result.state is PaginationState.ABORTED:
        return ExitCode.HTTP_ERROR
    return ExitCode.OK


@app.command(name="fetch")
def fetch(
    screen_name: str | None = typer.Option(
        None,
        "--screen-name",
        "--screen_name",
        help="Account whose timeline is downloaded [default: twitterapi]",
    ),
    out: str | None = typer.Option(
        None,
        "--out",
        help="Output prefix; items are written as PREFIX_<id>.json [default: content/user_timeline]",
    ),
    count: int | None = typer.Option(
        None, "--count", min=1, help="Page size requested from the API [default: 100]"
    ),
    batch: int | None = typer.Option(
        None, "--batch", min=1, help="Accepted for compatibility; not used for paging [default: 10]"
    ),
    total: int | None = typer.Option(
        None, "--total", min=1, help="Maximum number of items written this run [default: 10]"
    ),
    since: str | None = typer.Option(
        None, "--since", help="Only fetch items newer than this id; overrides the saved cursor"
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file [default: configs/tlsync.yaml if present]",
    ),
    set_overrides: list[str] = typer.Option(
        [],
        "--set",
        "-S",
        help="Override individual configuration keys at runtime (KEY=VALUE). Repeatable.",
    ),
    cursor_file: Path | None = typer.Option(
        None, "--cursor-file", help="Cursor file location [default: content/last_id]"
    ),
    credentials: Path | None = typer.Option(
        None, "--credentials", help="Four-line credentials file [default: CREDENTIALS]"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_format: LogFormat | None = typer.Option(
        None, "--log-format", case_sensitive=False, help="Structured log renderer"
    ),
) -> None:
    """Download new timeline items and save the resume cursor."""

    try:
        overrides = parse_set_overrides(set_overrides)
        cfg = load_config(
            config,
            cli_overrides=overrides,
            flag_overrides=_flag_overrides(
                screen_name=screen_name,
                out=out,
                count=count,
                batch=batch,
                total=total,
                since=since,
                cursor_file=cursor_file,
                credentials=credentials,
                log_format=log_format,
            ),
        )
    except ConfigError as exc:
        emit_cli_error_and_exit(
            template=CLI_ERROR_CONFIG,
            message=str(exc),
            event=LogEvents.CONFIG_LOAD_FAILED,
            context={"source": exc.source},
            cause=exc,
        )

    _configure_logging(cfg, verbose=verbose)
    run_id = str(uuid.uuid4())
    UnifiedLogger.bind(run_id=run_id, screen_name=cfg.timeline.screen_name, component="cli")
    log = UnifiedLogger.get(__name__)
    if overrides:
        log.debug(LogEvents.CONFIG_OVERRIDES_APPLIED, keys=sorted(overrides))

    try:
        creds = load_credentials(cfg.paths.credentials_file)
    except CredentialsError as exc:
        emit_cli_error_and_exit(
            template=CLI_ERROR_CONFIG,
            message=f"Could not parse credentials file: {exc}",
            event=LogEvents.CREDENTIALS_LOAD_FAILED,
            context={"source": exc.source},
            cause=exc,
        )

    sink = JsonFileSink(cfg.paths.output_prefix)
    try:
        sink.path_for(0).parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        emit_cli_error_and_exit(
            template=CLI_ERROR_IO,
            message=f"Cannot create output directory: {exc}",
            cause=exc,
        )

    log.info(
        LogEvents.CLI_RUN_START,
        count=cfg.timeline.count,
        batch=cfg.timeline.batch,
        total=cfg.timeline.total,
        since=cfg.timeline.since or None,
        output_prefix=cfg.paths.output_prefix,
    )
    cursor_store = FileCursorStore(cfg.paths.cursor_file)

    with ShutdownSignal() as shutdown, TimelineAPIClient(cfg.http, auth=creds.to_auth()) as client:
        paginator = TimelinePaginator(
            client,
            sink,
            cursor_store,
            RateLimitBackoff(cfg.backoff, shutdown=shutdown),
            shutdown=shutdown,
            callbacks=_progress_callbacks(),
        )
        try:
            result = paginator.run(
                screen_name=cfg.timeline.screen_name,
                count=cfg.timeline.count,
                cap=cfg.timeline.total,
                since=cfg.timeline.since,
                extra_params=cfg.timeline.extra_params,
            )
        except ConfigError as exc:
            emit_cli_error_and_exit(
                template=CLI_ERROR_CONFIG,
                message=str(exc),
                cause=exc,
            )

    if result.state is PaginationState.ABORTED and result.error is not None:
        emit_cli_error(
            template=CLI_ERROR_HTTP,
            message=str(result.error),
            context=result.error.to_dict(),
        )
    elif result.state is PaginationState.CANCELLED:
        cli_feedback.emit_warning("Interrupted; progress so far has been saved.")
    if result.written and not result.cursor_saved:
        cli_feedback.emit_warning(f"Could not save cursor to {cfg.paths.cursor_file}")

    cli_feedback.emit_success(f"Wrote {result.written} items to {sink.pattern}")
    exit_code = _exit_code_for(result)
    log.info(
        LogEvents.CLI_RUN_FINISH,
        state=result.state.value,
        written=result.written,
        skipped=result.skipped,
        exit_code=int(exit_code),
    )
    UnifiedLogger.reset()
    raise typer.Exit(code=int(exit_code))


def run() -> None:
    """Execute the Typer application."""

    app()
