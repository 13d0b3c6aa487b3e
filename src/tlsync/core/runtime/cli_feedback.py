"""Terminal output of ``tlsync`` commands.

Progress and the final summary go to stdout with a ``[tlsync]`` prefix.
Warnings and errors go to stderr so redirected progress output stays clean.
"""

from __future__ import annotations

import typer

__all__ = [
    "emit_line",
    "emit_progress",
    "emit_success",
    "emit_warning",
    "emit_error",
]

PREFIX = "[tlsync]"


def emit_line(message: str) -> None:
    """Print ``message`` as is."""

    typer.echo(message)


def emit_progress(message: str) -> None:
    typer.echo(f"{PREFIX} {message}")


def emit_success(message: str) -> None:
    typer.secho(f"{PREFIX} {message}", fg=typer.colors.GREEN)


def emit_warning(message: str) -> None:
    typer.secho(f"{PREFIX} WARN: {message}", err=True, fg=typer.colors.YELLOW)


def emit_error(message: str) -> None:
    typer.secho(f"{PREFIX} ERROR {message}", err=True, fg=typer.colors.RED)
