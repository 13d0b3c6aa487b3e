"""Command line interface for tlsync."""

from __future__ import annotations

from tlsync.cli.app import app, run

__all__ = ["app", "run"]
