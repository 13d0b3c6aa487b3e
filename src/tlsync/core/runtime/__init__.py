"""Runtime primitives shared by the CLI and the fetch run."""

from __future__ import annotations

from .shutdown import ShutdownSignal

__all__ = ["ShutdownSignal"]
